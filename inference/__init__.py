"""
Inference module for the Environmental Analytics Engine.
Provides statistical anomaly detection and short-horizon forecasting.
"""

from inference.anomaly_detector import AnomalyDetector, is_anomalous, get_anomaly_detector
from inference.forecaster import Forecaster, PredictionPoint, get_forecaster

__all__ = [
    "AnomalyDetector",
    "is_anomalous",
    "get_anomaly_detector",
    "Forecaster",
    "PredictionPoint",
    "get_forecaster",
]
