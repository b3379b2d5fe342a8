"""SyncParty: keeps viewers' video players in sync through shared rooms."""
