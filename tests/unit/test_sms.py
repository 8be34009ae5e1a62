import httpx
import pytest

from repairdesk.config import SmsConfig
from repairdesk.services.sms import SmsChannel, normalize_phone
from repairdesk.workflow.errors import InvalidPhoneError


@pytest.mark.parametrize(("raw", "expected"), [
    ("067590272", "+38267590272"),
    ("067 590 272", "+38267590272"),
    ("+382 67 590 272", "+38267590272"),
    ("0038267590272", "+38267590272"),
    ("38267590272", "+38267590272"),
    ("67590272", "+38267590272"),
    ("+1 (415) 555-0100", "+14155550100"),
])
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw, "382") == expected


@pytest.mark.parametrize("raw", ["", "   ", "abc", "012", "+1234567890123456"])
def test_normalize_phone_rejects_garbage(raw):
    with pytest.raises(InvalidPhoneError):
        normalize_phone(raw, "382")


def _config(**overrides) -> SmsConfig:
    values = dict(enabled=True, base_url="https://sms.test", api_key="key-123", sender_id="SERVIS")
    values.update(overrides)
    return SmsConfig(**values)


async def test_send_posts_form_and_reads_message_id():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.content.decode()
        return httpx.Response(200, json={"result": {"error": 0, "message_id": "abc42"}})

    channel = SmsChannel(_config(), transport=httpx.MockTransport(handler))
    result = await channel.send("+38267590272", "Hello there")

    assert result.success
    assert result.provider_message_id == "abc42"
    assert seen["url"] == "https://sms.test/sendsms/"
    assert "apikey=key-123" in seen["body"]
    assert "sendername=SERVIS" in seen["body"]
    assert "recipients=%2B38267590272" in seen["body"]


async def test_send_reports_gateway_error():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"error": 1, "details": "insufficient credit"})
    )
    result = await SmsChannel(_config(), transport=transport).send("+38267590272", "x")
    assert not result.success
    assert result.error == "insufficient credit"


async def test_send_reports_http_failure():
    transport = httpx.MockTransport(lambda request: httpx.Response(503, text="down"))
    result = await SmsChannel(_config(), transport=transport).send("+38267590272", "x")
    assert not result.success
    assert "503" in result.error


async def test_send_reports_unreachable_gateway():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = await SmsChannel(_config(), transport=httpx.MockTransport(handler)).send("+38267590272", "x")
    assert not result.success
    assert "unreachable" in result.error


async def test_disabled_channel_does_not_call_gateway():
    calls = []
    transport = httpx.MockTransport(lambda request: calls.append(request) or httpx.Response(200, json={}))
    channel = SmsChannel(_config(enabled=False), transport=transport)
    assert not channel.is_configured
    result = await channel.send("+38267590272", "x")
    assert not result.success
    assert calls == []
