from onboarding.schemas.tool_calls import (
    CollectFacility,
    CreateSportsCenter,
    DetectLanguage,
    UnknownToolCall,
    UpdateFacility,
    parse_tool_call,
)


def test_json_string_arguments_with_camel_case_keys():
    call = parse_tool_call(
        "collect_facility",
        '{"name": "Court 1", "sportId": 1, "sportName": "Padel", '
        '"schedules": [{"weekdays": [6, 7], "startTime": "10:00", "endTime": "14:00", '
        '"duration": 60, "rate": 8.5}]}',
    )

    assert isinstance(call, CollectFacility)
    assert call.sport_id == 1
    assert call.schedules[0].start_time == "10:00"
    assert call.schedules[0].rate == 8.5


def test_snake_case_arguments_are_accepted():
    call = parse_tool_call("detect_language", {"language_code": "en", "confidence": 0.9})

    assert isinstance(call, DetectLanguage)
    assert call.language_code == "en"


def test_update_facility_uses_index_argument():
    call = parse_tool_call("update_facility", {"facilityIndex": 0, "name": "Pista 1"})

    assert isinstance(call, UpdateFacility)
    assert call.facility_index == 0
    assert call.schedules is None


def test_create_without_arguments():
    assert isinstance(parse_tool_call("create_sports_center", None), CreateSportsCenter)
    assert isinstance(parse_tool_call("create_sports_center", ""), CreateSportsCenter)


def test_unrecognized_name_becomes_unknown():
    call = parse_tool_call("delete_everything", {"really": True})

    assert isinstance(call, UnknownToolCall)
    assert call.name == "delete_everything"
    assert call.arguments == {"really": True}
    assert call.reason == "unrecognized tool"


def test_invalid_arguments_become_unknown():
    call = parse_tool_call("confirm_configuration", {"confirmed": "maybe"})

    assert isinstance(call, UnknownToolCall)
    assert call.name == "confirm_configuration"


def test_malformed_json_becomes_unknown():
    call = parse_tool_call("collect_admin_info", "{not json")

    assert isinstance(call, UnknownToolCall)
    assert call.reason.startswith("invalid JSON arguments")


def test_non_object_arguments_become_unknown():
    for raw in ("[1, 2]", '"x"', "42", "[]"):
        call = parse_tool_call("collect_admin_info", raw)

        assert isinstance(call, UnknownToolCall)
        assert call.name == "collect_admin_info"
        assert call.reason == "arguments must be a JSON object"
