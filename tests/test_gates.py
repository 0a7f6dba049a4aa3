from connectors import ToolSpec
from gates import filter_tools, is_challenge_response


def _tools(*names):
    return {name: ToolSpec(name=name) for name in names}


def test_filter_tools_drops_remote_execution_tools():
    tools = _tools(
        "COMPOSIO_SEARCH_TOOLS",
        "COMPOSIO_MULTI_EXECUTE_TOOL",
        "COMPOSIO_REMOTE_BASH_TOOL",
        "COMPOSIO_REMOTE_WORKBENCH",
    )
    filtered = filter_tools(tools)
    assert sorted(filtered) == ["COMPOSIO_MULTI_EXECUTE_TOOL", "COMPOSIO_SEARCH_TOOLS"]


def test_filter_tools_is_noop_without_excluded_names():
    tools = _tools("COMPOSIO_SEARCH_TOOLS", "JUNGLESCOUT_QUERY_THE_PRODUCT_DATABASE")
    assert filter_tools(tools) == tools


def test_filter_tools_does_not_mutate_input():
    tools = _tools("COMPOSIO_REMOTE_BASH_TOOL", "COMPOSIO_SEARCH_TOOLS")
    filter_tools(tools)
    assert "COMPOSIO_REMOTE_BASH_TOOL" in tools


def test_challenge_detected_in_nested_payload():
    payload = {"data": {"redirect": "https://geo.captcha-delivery.com/captcha/?initialCid=abc"}}
    assert is_challenge_response(payload)


def test_challenge_detected_for_each_signature():
    for marker in ("captcha-delivery.com", "Please enable JS", "geo.captcha-delivery", "datadome"):
        assert is_challenge_response(f"<html>{marker}</html>"), marker


def test_clean_payloads_are_not_challenges():
    assert not is_challenge_response(None)
    assert not is_challenge_response({"data": [{"asin": "B0001", "monthly_revenue": 52000}]})
    assert not is_challenge_response("")


def test_challenge_match_is_case_sensitive():
    assert not is_challenge_response("Blocked by DataDome")
