"""Tests for frame decoding, command validation and outbound serialization."""
import pytest

from syncparty.relay.errors import MalformedMessage, UnsupportedMessageType, ValidationError
from syncparty.relay.schemas import (
    CreateRoomCommand,
    JoinRoomCommand,
    RoomCreated,
    RoomJoined,
    VideoEventBroadcast,
    VideoEventCommand,
    decode_frame,
    parse_command,
)


class TestDecodeFrame:
    def test_decodes_text_object(self):
        assert decode_frame('{"type": "JOIN_ROOM"}') == {"type": "JOIN_ROOM"}

    def test_decodes_utf8_bytes(self):
        assert decode_frame(b'{"roomId": "caf\xc3\xa9"}') == {"roomId": "café"}

    @pytest.mark.parametrize("raw", ["not json", "{", "", b"\x80abc"])
    def test_invalid_json_is_malformed(self, raw):
        with pytest.raises(MalformedMessage):
            decode_frame(raw)

    @pytest.mark.parametrize("raw", ["[]", "42", '"text"', "null"])
    def test_non_object_is_malformed(self, raw):
        with pytest.raises(MalformedMessage):
            decode_frame(raw)


class TestParseCommand:
    def test_create_room(self):
        command = parse_command(
            {"type": "CREATE_ROOM", "roomId": "r1", "requestId": "1", "url": "http://x"}
        )
        assert isinstance(command, CreateRoomCommand)
        assert command.roomId == "r1"
        assert command.url == "http://x"

    def test_create_room_blank_url_becomes_none(self):
        command = parse_command({"type": "CREATE_ROOM", "roomId": "r1", "requestId": "1", "url": ""})
        assert command.url is None

    def test_join_room_with_numeric_request_id(self):
        command = parse_command({"type": "JOIN_ROOM", "roomId": "r1", "requestId": 7})
        assert isinstance(command, JoinRoomCommand)
        assert command.requestId == 7

    def test_video_event_tracks_supplied_fields(self):
        command = parse_command({"type": "VIDEO_EVENT", "roomId": "r1", "event": "pause", "time": 12.5})
        assert isinstance(command, VideoEventCommand)
        assert command.time == 12.5
        assert command.playing is None
        assert "playing" not in command.model_fields_set

    def test_extra_fields_are_ignored(self):
        command = parse_command(
            {"type": "JOIN_ROOM", "roomId": "r1", "requestId": "1", "clientId": "c", "extra": True}
        )
        assert command.roomId == "r1"

    @pytest.mark.parametrize("data", [
        {"type": "CREATE_ROOM", "requestId": "1"},
        {"type": "CREATE_ROOM", "roomId": "r1"},
        {"type": "CREATE_ROOM", "roomId": "", "requestId": "1"},
        {"type": "CREATE_ROOM", "roomId": "r1", "requestId": ""},
        {"type": "CREATE_ROOM", "roomId": "r1", "requestId": 0},
    ])
    def test_create_room_missing_fields(self, data):
        with pytest.raises(ValidationError) as exc_info:
            parse_command(data)
        assert exc_info.value.reason == "Missing roomId or requestId"
        assert exc_info.value.message_type == "CREATE_ROOM"

    def test_validation_error_carries_supplied_ids(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_command({"type": "JOIN_ROOM", "roomId": "r1"})
        assert exc_info.value.room_id == "r1"
        assert exc_info.value.request_id is None

        with pytest.raises(ValidationError) as exc_info:
            parse_command({"type": "JOIN_ROOM", "requestId": "9"})
        assert exc_info.value.room_id is None
        assert exc_info.value.request_id == "9"

    def test_video_event_missing_event(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_command({"type": "VIDEO_EVENT", "roomId": "r1"})
        assert exc_info.value.reason == "Missing roomId or event"

    def test_optional_fields_are_not_coerced(self):
        command = parse_command({
            "type": "VIDEO_EVENT", "roomId": "r1", "event": "seek", "time": "12.5", "playing": "no",
        })
        assert command.time == "12.5"
        assert command.playing == "no"

        command = parse_command({"type": "CREATE_ROOM", "roomId": "r1", "requestId": "1", "url": 5})
        assert command.url == 5

    @pytest.mark.parametrize("request_id", [True, 1.5, ["a"], {"n": 1}])
    def test_any_non_empty_request_id_is_accepted(self, request_id):
        command = parse_command({"type": "JOIN_ROOM", "roomId": "r1", "requestId": request_id})
        assert command.requestId == request_id

    def test_wrong_type_for_room_id_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_command({"type": "VIDEO_EVENT", "roomId": 5, "event": "seek"})
        assert exc_info.value.reason == "Missing roomId or event"
        assert exc_info.value.room_id is None

    @pytest.mark.parametrize("data", [{}, {"type": "LEAVE_ROOM"}, {"type": 3}, {"type": None}])
    def test_unsupported_type(self, data):
        with pytest.raises(UnsupportedMessageType):
            parse_command(data)


class TestOutbound:
    def test_room_created_success_keeps_null_url(self):
        wire = RoomCreated(ok=True, roomId="r1", requestId="1", url=None).to_wire()
        assert wire == {"type": "ROOM_CREATED", "ok": True, "roomId": "r1", "requestId": "1", "url": None}

    def test_room_joined_failure_has_reason_not_url(self):
        wire = RoomJoined(ok=False, roomId="r1", requestId="2", reason="Room not found").to_wire()
        assert wire == {
            "type": "ROOM_JOINED",
            "ok": False,
            "roomId": "r1",
            "requestId": "2",
            "reason": "Room not found",
        }

    def test_video_event_omits_unset_fields(self):
        wire = VideoEventBroadcast(roomId="r1", event="pause", time=12.5, fromClientId=None).to_wire()
        assert wire == {
            "type": "VIDEO_EVENT",
            "roomId": "r1",
            "event": "pause",
            "time": 12.5,
            "fromClientId": None,
        }
