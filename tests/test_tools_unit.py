import pytest

from iot_tools.adapters import AdapterError
from iot_tools.auth import get_auth
from iot_tools.schemas import LedControlInput, SensorAttributesInput, TemperatureInput
from iot_tools.tools.common import iso_from_ms
from iot_tools.tools.led_control import set_led_state
from iot_tools.tools.sensor_attributes import build_summary, get_sensor_attributes, latest_by_key
from iot_tools.tools.temperature import NO_DATA, get_temperature, latest_sample, pick_temperature

from conftest import ENTITY_ID


def test_temperature_reads_latest_sample(thingsboard, tool_settings):
    thingsboard.timeseries = {
        "temperature": [
            {"ts": 1758215700000, "value": "18.5"},
            {"ts": 1758215705509, "value": "19"},
        ],
        "ledState": [{"ts": 1758215705509, "value": "true"}],
    }
    result = get_temperature(TemperatureInput(), tool_settings, "trace")

    assert result.temperature == "19.00"
    assert result.unit == "°C"
    assert result.source == "temperature"
    assert result.sensor_id == ENTITY_ID
    assert result.timestamp == iso_from_ms(1758215705509)
    assert result.message.startswith("Latest temperature: 19.00°C from temperature")
    assert set(result.all_sensor_data) == {"temperature", "ledState"}
    assert result.all_sensor_data["ledState"]["raw_timestamp"] == 1758215705509

    request = thingsboard.api_requests()[0]
    assert request.url.path == f"/api/plugins/telemetry/DEVICE/{ENTITY_ID}/values/timeseries"
    assert request.url.params["useStrictDataTypes"] == "false"
    assert request.headers["X-Authorization"] == "Bearer tb-token-1"


def test_temperature_falls_back_to_any_temp_key(thingsboard, tool_settings):
    thingsboard.timeseries = {"ambientTemp": [{"ts": 1000, "value": 21.25}]}
    result = get_temperature(TemperatureInput(), tool_settings, "trace")
    assert result.temperature == "21.25"
    assert result.source == "ambientTemp"


def test_temperature_without_reading_reports_no_data(thingsboard, tool_settings):
    thingsboard.timeseries = {"humidity": [{"ts": 1000, "value": "40"}]}
    result = get_temperature(TemperatureInput(entity_id="other-device"), tool_settings, "trace")
    assert result.temperature == NO_DATA
    assert result.source == "none"
    assert result.sensor_id == "other-device"
    assert result.message == "No temperature data found in response"
    assert "humidity" in result.all_sensor_data


def test_temperature_ignores_requested_non_temperature_keys(thingsboard, tool_settings):
    thingsboard.timeseries = {"humidity": [{"ts": 1000, "value": "40"}]}
    result = get_temperature(TemperatureInput(keys="humidity"), tool_settings, "trace")
    assert result.temperature == NO_DATA
    assert result.source == "none"
    assert result.all_sensor_data["humidity"]["value"] == "40"


def test_pick_temperature_prefers_requested_keys_and_skips_non_numeric():
    data = {
        "temperature": [{"ts": 5, "value": "n/a"}],
        "boardTemp": [{"ts": 3, "value": "30.1"}],
        "probeTemp": [{"ts": 4, "value": "12"}],
        "humidity": [{"ts": 6, "value": "40"}],
    }
    assert pick_temperature(data, ["probeTemp", "temperature"])[:2] == ("probeTemp", 12.0)
    assert pick_temperature(data, ["humidity"])[:2] == ("boardTemp", 30.1)
    assert pick_temperature(data, ["temperature"])[:2] == ("boardTemp", 30.1)
    assert pick_temperature({"temperature": []}, ["temperature"]) is None


def test_latest_sample_ignores_malformed_entries():
    assert latest_sample("not a list") is None
    assert latest_sample([{"value": 1}]) is None
    assert latest_sample([{"ts": 2, "value": "b"}, {"ts": 9, "value": "a"}])["value"] == "a"


@pytest.mark.parametrize("led_state", [True, False])
def test_led_control_echoes_requested_state(thingsboard, tool_settings, led_state):
    result = set_led_state(LedControlInput(led_state=led_state), tool_settings, "trace")

    assert result.success is True
    assert result.led_state is led_state
    assert result.entity_id == ENTITY_ID
    assert result.message == f"LED successfully turned {'ON' if led_state else 'OFF'}"
    assert thingsboard.shared == [{"ledState": led_state}]
    assert thingsboard.api_requests()[0].url.path == f"/api/plugins/telemetry/{ENTITY_ID}/SHARED_SCOPE"


def test_led_control_rejects_non_boolean_state():
    with pytest.raises(ValueError):
        LedControlInput(led_state="yes")


def test_upstream_401_clears_cached_token(thingsboard, tool_settings):
    thingsboard.failures["/SHARED_SCOPE"] = (401, "Token has expired")
    with pytest.raises(AdapterError) as excinfo:
        set_led_state(LedControlInput(led_state=True), tool_settings, "trace")

    assert excinfo.value.code == "UPSTREAM_ERROR"
    assert excinfo.value.details["status_code"] == 401
    assert "Token has expired" in excinfo.value.message

    thingsboard.failures.clear()
    set_led_state(LedControlInput(led_state=True), tool_settings, "trace")
    assert thingsboard.logins == 2
    assert get_auth().get_access_token() == "tb-token-2"


def test_sensor_attributes_keep_newest_value_per_key(thingsboard, tool_settings):
    thingsboard.attributes = [
        {"key": "ssid", "value": "old-net", "lastUpdateTs": 1000},
        {"key": "rssi", "value": -61, "lastUpdateTs": 5000},
        {"key": "ssid", "value": "home-net", "lastUpdateTs": 9000},
        {"key": "ssid", "value": "older-net", "lastUpdateTs": 3000},
        {"key": "macAddress", "value": "AA:BB:CC:DD:EE:FF", "lastUpdateTs": 2000},
    ]
    result = get_sensor_attributes(SensorAttributesInput(), tool_settings, "trace")

    assert [a.key for a in result.attributes] == ["ssid", "rssi", "macAddress"]
    assert result.attributes[0].value == "home-net"
    assert result.attribute_count == 3
    assert result.raw_attribute_count == 5
    assert result.message == "Retrieved 3 sensor attributes successfully"
    assert result.summary.ssid == "home-net"
    assert result.summary.rssi == -61.0
    assert result.summary.mac_address == "AA:BB:CC:DD:EE:FF"
    assert result.summary.local_ip is None
    assert thingsboard.api_requests()[0].url.path.endswith(f"/DEVICE/{ENTITY_ID}/values/attributes")


def test_summary_drops_malformed_fields():
    attributes = latest_by_key(
        [
            {"key": "macAddress", "value": {"unexpected": 1}, "lastUpdateTs": 1},
            {"key": "ledMode", "value": 2, "lastUpdateTs": 1},
            {"key": "active", "value": True, "lastUpdateTs": 1},
        ]
    )
    summary = build_summary(attributes)
    assert summary.mac_address is None
    assert summary.led_mode == 2
    assert summary.active is True


def test_missing_entity_id_raises(thingsboard, monkeypatch):
    monkeypatch.delenv("THINGSBOARD_DEFAULT_ENTITY_ID")
    from iot_tools.settings import ToolServerSettings

    with pytest.raises(AdapterError) as excinfo:
        get_sensor_attributes(SensorAttributesInput(), ToolServerSettings(), "trace")
    assert excinfo.value.code == "MISSING_ENTITY_ID"
    assert thingsboard.requests == []
