"""
Environmental Monitoring Daemon: Live city telemetry with analytics.

This daemon polls weather and air quality, ticks the building energy
meters, and runs the analytics layer on every tick:
- Sustainability score with trend
- Statistical anomaly detection plus energy spike alerts
- 12-hour energy, AQI and carbon forecasts
- Ranked natural-language insights and a one-line summary
- Graceful shutdown on SIGINT/SIGTERM
"""

import json
import logging
import signal
import time
from typing import Optional

from core.insights import InsightGenerator
from core.models import AirQualityData, DashboardState, WeatherData
from inference.forecaster import analyze_metric_trends, get_forecaster
from loaders import get_air_quality_loader, get_telemetry, get_weather_loader
from loaders.telemetry import API_REFRESH_SECONDS, ENERGY_TICK_SECONDS

# Configure logging with rich formatting
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s │ %(name)-20s │ %(levelname)-8s │ %(message)s',
    datefmt='%H:%M:%S',
    handlers=[
        logging.StreamHandler()
    ]
)
log = logging.getLogger("daemon")

# Monitored city
CITY = "Chennai"
STATE = "Tamil Nadu"
COUNTRY = "India"

# Daemon configuration
FORECAST_HOURS = 12
STATUS_FILE = "daemon_status.json"


class DaemonState:
    """Manages daemon state and graceful shutdown."""

    def __init__(self):
        self.running = True
        self.tick_count = 0
        self.refresh_count = 0
        self.anomaly_total = 0
        self.start_time = time.time()
        self.last_refresh = 0.0
        self.weather: Optional[WeatherData] = None
        self.air_quality: Optional[AirQualityData] = None
        self.previous: Optional[DashboardState] = None

    def get_uptime_str(self) -> str:
        elapsed = time.time() - self.start_time
        hours, remainder = divmod(int(elapsed), 3600)
        minutes, seconds = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"

    def refresh_due(self, now: float) -> bool:
        return now - self.last_refresh >= API_REFRESH_SECONDS


def signal_handler(signum, frame, state: DaemonState):
    """Handle graceful shutdown on SIGINT/SIGTERM."""
    log.info("┌────────────────────────────────────────┐")
    log.info("│      SHUTDOWN SIGNAL RECEIVED          │")
    log.info("└────────────────────────────────────────┘")

    state.running = False

    log.info(f"Final Statistics:")
    log.info(f"  • Energy ticks: {state.tick_count}")
    log.info(f"  • API refreshes: {state.refresh_count}")
    log.info(f"  • Anomalies raised: {state.anomaly_total}")
    log.info(f"  • Uptime: {state.get_uptime_str()}")


def write_status(state: DaemonState, dashboard: DashboardState) -> None:
    """Write the latest snapshot for the dashboard to pick up."""
    status = {
        "ticks": state.tick_count,
        "running": state.running,
        "uptime": state.get_uptime_str(),
        "anomaly_total": state.anomaly_total,
        "dashboard": dashboard.to_dict(),
    }
    try:
        with open(STATUS_FILE, "w") as f:
            json.dump(status, f)
    except OSError as e:
        log.debug(f"Failed to write status file: {e}")


def run_daemon():
    """Main daemon loop: API refresh on one cadence, energy ticks on another."""

    log.info("┌────────────────────────────────────────────────────────────┐")
    log.info("│  🌿  ENVIRONMENTAL MONITORING DAEMON - LIVE ANALYTICS MODE  │")
    log.info("└────────────────────────────────────────────────────────────┘")

    state = DaemonState()

    log.info("Initializing components...")
    weather_loader = get_weather_loader()
    air_loader = get_air_quality_loader()
    telemetry = get_telemetry()
    forecaster = get_forecaster()
    insights = InsightGenerator()

    signal.signal(signal.SIGINT, lambda s, f: signal_handler(s, f, state))
    signal.signal(signal.SIGTERM, lambda s, f: signal_handler(s, f, state))

    log.info(f"Monitoring {CITY}, {STATE}, {COUNTRY}")
    log.info(f"API refresh: {API_REFRESH_SECONDS}s | Energy tick: {ENERGY_TICK_SECONDS}s")

    try:
        while state.running:
            now = time.time()

            # ═══════════════════════════════════════════════════════════
            # PHASE 1: EXTERNAL DATA (slow cadence)
            # ═══════════════════════════════════════════════════════════
            if state.refresh_due(now):
                state.weather = weather_loader.get_weather(CITY) or state.weather
                state.air_quality = air_loader.get_air_quality(CITY, STATE, COUNTRY)
                state.last_refresh = now
                state.refresh_count += 1
                tag = " (simulated)" if state.air_quality.simulated else ""
                log.info(f"🌤️ Refreshed conditions: AQI {state.air_quality.aqi:g}{tag}")

            # ═══════════════════════════════════════════════════════════
            # PHASE 2: ENERGY TICK + SNAPSHOT
            # ═══════════════════════════════════════════════════════════
            state.tick_count += 1
            telemetry.tick()
            dashboard = telemetry.build_state(state.weather, state.air_quality)
            state.anomaly_total += len(dashboard.anomalies)

            # ═══════════════════════════════════════════════════════════
            # PHASE 3: ANALYTICS
            # ═══════════════════════════════════════════════════════════
            log.info(f"")
            log.info(f"══════════ TICK {state.tick_count} ══════════")
            log.info(
                f"⚡ Usage: {dashboard.current_usage:.0f} kWh | "
                f"Rolling: {dashboard.rolling_avg_usage:.0f} kWh | "
                f"Carbon: {dashboard.carbon.total:.1f} kg"
            )
            if dashboard.sustainability_score is not None:
                log.info(f"🌿 Sustainability score: {dashboard.sustainability_score}/100")

            for anomaly in dashboard.anomalies[:3]:
                log.info(f"   └─ [{anomaly.severity.value.upper()}] {anomaly.description}")

            if state.weather is not None:
                forecast = forecaster.predict_all(
                    dashboard.energy_history,
                    list(telemetry.aqi_history),
                    temperature=state.weather.temperature,
                    wind_speed=state.weather.wind_speed,
                    hours=FORECAST_HOURS,
                )
                peak = forecast.loc[forecast['energy'].idxmax()]
                log.info(f"📈 Peak forecast: {peak['energy']} kWh at {peak['energy_time']}")

            if state.previous is not None and state.air_quality is not None:
                notes = analyze_metric_trends(
                    state.air_quality.aqi,
                    dashboard.current_usage,
                    dashboard.carbon.total,
                    state.previous.air_quality.aqi if state.previous.air_quality else state.air_quality.aqi,
                    state.previous.current_usage,
                    state.previous.carbon.total,
                )
                log.debug(f"Trends: {'; '.join(notes)}")

            log.info(f"💡 {insights.summarize(dashboard)}")

            write_status(state, dashboard)
            state.previous = dashboard

            # ═══════════════════════════════════════════════════════════
            # SLEEP BEFORE NEXT TICK
            # ═══════════════════════════════════════════════════════════
            log.debug(f"Sleeping {ENERGY_TICK_SECONDS}s before next tick...")
            time.sleep(ENERGY_TICK_SECONDS)

    except KeyboardInterrupt:
        pass  # Handled by signal handler
    except Exception as e:
        log.error(f"Daemon crashed with error: {e}")
        raise
    finally:
        log.info("Daemon shutdown complete.")


if __name__ == "__main__":
    run_daemon()
