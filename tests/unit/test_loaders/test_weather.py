import pytest
import requests
from unittest.mock import MagicMock, patch
from loaders.weather import WeatherLoader, get_weather_loader

OPENWEATHER_PAYLOAD = {
    "name": "Chennai",
    "main": {"temp": 31.4, "humidity": 74},
    "wind": {"speed": 5.0},
    "clouds": {"all": 40},
    "weather": [{"main": "Clouds", "description": "scattered clouds"}],
}


@pytest.fixture
def mock_loader():
    with patch('requests.Session') as mock_session:
        loader = WeatherLoader(api_key="test-key")
        loader.session = mock_session.return_value
        yield loader


def test_get_weather_success(mock_loader):
    """Verify payload mapping, including m/s to km/h."""
    mock_response = MagicMock()
    mock_response.json.return_value = OPENWEATHER_PAYLOAD
    mock_loader.session.get.return_value = mock_response

    weather = mock_loader.get_weather("Chennai")
    assert weather.city == "Chennai"
    assert weather.temperature == 31.4
    assert weather.humidity == 74
    assert weather.wind_speed == 18.0
    assert weather.condition == "Clouds"
    assert weather.clouds == 40

    params = mock_loader.session.get.call_args.kwargs["params"]
    assert params["units"] == "metric"
    assert params["appid"] == "test-key"


def test_get_weather_without_key(monkeypatch):
    """Verify no request is made when no key is configured."""
    monkeypatch.delenv("OPENWEATHER_API_KEY", raising=False)
    loader = WeatherLoader()
    loader.session = MagicMock()

    assert loader.get_weather() is None
    loader.session.get.assert_not_called()


def test_get_weather_reads_key_from_env(monkeypatch):
    monkeypatch.setenv("OPENWEATHER_API_KEY", "env-key")
    assert get_weather_loader().api_key == "env-key"


def test_get_weather_request_failure(mock_loader):
    """Verify network errors are logged and swallowed."""
    with patch.object(mock_loader, "_request", side_effect=requests.ConnectionError("down")):
        assert mock_loader.get_weather() is None


def test_get_weather_retries(mock_loader):
    """Verify transient failures are retried before succeeding."""
    mock_response = MagicMock()
    mock_response.json.return_value = OPENWEATHER_PAYLOAD
    mock_loader.session.get.side_effect = [requests.Timeout("slow"), mock_response]

    with patch("time.sleep"):
        weather = mock_loader.get_weather()

    assert weather.temperature == 31.4
    assert mock_loader.session.get.call_count == 2


def test_get_weather_malformed_payload(mock_loader):
    mock_response = MagicMock()
    mock_response.json.return_value = {"cod": 404, "message": "city not found"}
    mock_loader.session.get.return_value = mock_response

    assert mock_loader.get_weather("Nowhere") is None
