"""
Anomaly Detector for flagging out-of-distribution environmental readings.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from core.models import Anomaly, AnomalySeverity, EnergyReading
from core.statistics import mean, stddev

log = logging.getLogger("inference.anomaly_detector")

DEFAULT_Z_THRESHOLD = 2.0
HIGH_SEVERITY_Z = 3.0
MEDIUM_SEVERITY_Z = 2.0

SEVERITY_COLORS = {
    AnomalySeverity.LOW: "yellow",
    AnomalySeverity.MEDIUM: "orange",
    AnomalySeverity.HIGH: "red",
}


def is_anomalous(
    current: float,
    history: Sequence[float],
    threshold: float = DEFAULT_Z_THRESHOLD
) -> bool:
    """
    Z-score test: |current - mean| / stddev > threshold.

    Needs at least 2 history samples. A constant history (stddev 0) is never
    anomalous, whatever the current value.
    """
    if len(history) < 2:
        return False

    sigma = stddev(history)
    if sigma == 0:
        return False

    z = abs(current - mean(history)) / sigma
    return z > threshold


def classify_severity(z: float) -> AnomalySeverity:
    """Severity from z-score magnitude."""
    if z > HIGH_SEVERITY_Z:
        return AnomalySeverity.HIGH
    if z > MEDIUM_SEVERITY_Z:
        return AnomalySeverity.MEDIUM
    return AnomalySeverity.LOW


class AnomalyDetector:
    """
    Detects anomalous readings across a set of named metrics.

    Each metric is tested independently against its own history with the
    z-score method. Output order follows the input mapping's order.

    Usage:
        detector = AnomalyDetector()
        anomalies = detector.detect_all({
            "Energy Consumption": {"current": 650, "history": [...]},
            "AQI": {"current": 180, "history": [...]},
        })
    """

    SPIKE_THRESHOLD_PCT = 20.0  # tick-over-tick usage jump to flag
    SPIKE_HIGH_PCT = 40.0

    def __init__(
        self,
        threshold: float = DEFAULT_Z_THRESHOLD,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the anomaly detector.

        Args:
            threshold: z-score above which a reading is anomalous
            clock: returns the detection timestamp; defaults to datetime.now
        """
        self.threshold = threshold
        self.clock = clock or datetime.now

    def _make_id(self, metric: str, now: datetime) -> str:
        return f"{metric}-{int(now.timestamp() * 1000)}"

    def detect(self, metric: str, current: float, history: Sequence[float]) -> Optional[Anomaly]:
        """Test a single metric; returns an Anomaly or None."""
        if not is_anomalous(current, history, self.threshold):
            return None

        expected = mean(history)
        sigma = stddev(history)
        deviation = abs(current - expected)
        severity = classify_severity(deviation / sigma)

        direction = "high" if current > expected else "low"
        now = self.clock()
        return Anomaly(
            id=self._make_id(metric, now),
            metric=metric,
            current_value=current,
            expected_value=expected,
            deviation=deviation,
            severity=severity,
            timestamp=now,
            description=f"{metric} is unusually {direction} ({current:.1f})",
        )

    def detect_all(self, metrics: Mapping[str, Mapping[str, object]]) -> List[Anomaly]:
        """
        Run detection on every metric.

        Args:
            metrics: metric name -> {"current": float, "history": [float, ...]}

        Returns:
            Anomalies in input order. Metrics with too little history are skipped.
        """
        anomalies = []
        for name, data in metrics.items():
            anomaly = self.detect(name, data.get("current", 0.0), data.get("history", ()))
            if anomaly:
                anomalies.append(anomaly)

        log.debug(f"Detected {len(anomalies)} anomalies across {len(metrics)} metrics")
        return anomalies

    def detect_energy_spikes(
        self,
        current: Sequence[EnergyReading],
        previous: Sequence[EnergyReading]
    ) -> List[Anomaly]:
        """
        Flag buildings whose usage jumped more than 20% since the last tick.

        Buildings without a previous reading (or with zero previous usage)
        are skipped.
        """
        previous_by_id: Dict[str, EnergyReading] = {r.building_id: r for r in previous}
        now = self.clock()

        spikes = []
        for reading in current:
            prev = previous_by_id.get(reading.building_id)
            if prev is None or prev.energy_usage <= 0:
                continue

            change_pct = (reading.energy_usage - prev.energy_usage) / prev.energy_usage * 100
            if change_pct <= self.SPIKE_THRESHOLD_PCT:
                continue

            severity = (
                AnomalySeverity.HIGH if change_pct > self.SPIKE_HIGH_PCT
                else AnomalySeverity.MEDIUM
            )
            metric = f"{reading.building_id} Energy"
            spikes.append(Anomaly(
                id=self._make_id(metric, now),
                metric=metric,
                current_value=reading.energy_usage,
                expected_value=prev.energy_usage,
                deviation=reading.energy_usage - prev.energy_usage,
                severity=severity,
                timestamp=now,
                description=f"{reading.building_id} usage spiked {round(change_pct)}% ({reading.energy_usage:.1f} kWh)",
            ))

        return spikes


def get_severity_color(severity: AnomalySeverity) -> str:
    """Color tag for an anomaly severity."""
    return SEVERITY_COLORS[severity]


def get_anomaly_detector(threshold: float = DEFAULT_Z_THRESHOLD) -> AnomalyDetector:
    """Factory function for the anomaly detector."""
    return AnomalyDetector(threshold=threshold)
