"""
Result publishing interface

This module handles UDP communication with display or logging clients,
formatting alerts and analysis results into JSON messages.
"""

import json
import logging
import socket
from typing import Dict, Any

from ..core.data_types import Alert, AnalysisSnapshot, IntegratedResult, ConditionScore
from ..core.config import UDP_HOST, UDP_PORT


class ResultSender:
    """
    Send alerts and analysis results via UDP JSON messages

    Each message is a single datagram with a "type" field. Spectra are not
    sent; snapshots carry statistics and dominant frequencies only.
    """

    def __init__(self, host: str = UDP_HOST, port: int = UDP_PORT):
        self.host = host
        self.port = port
        self.socket = None
        self._setup_socket()

    def _setup_socket(self):
        """Setup UDP socket for communication"""
        try:
            self.socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            logging.info(f"UDP sender initialized: {self.host}:{self.port}")
        except Exception as e:
            logging.error(f"Failed to setup UDP socket: {e}")

    def send_alert(self, alert: Alert) -> bool:
        """
        Send one alert

        Args:
            alert: Alert pushed by the scheduler

        Returns:
            bool: True if sent successfully
        """
        return self._send({
            "type": "alert",
            "id": alert.id,
            "t": alert.timestamp,
            "severity": alert.severity,
            "message": alert.message,
        })

    def send_snapshot(self, snapshot: AnalysisSnapshot) -> bool:
        """Send a periodic analysis snapshot"""
        return self._send({
            "type": "snapshot",
            "t": snapshot.timestamp,
            "samples": snapshot.sample_count,
            "dominant_frequency": {ch: float(f) for ch, f in snapshot.dominant_frequency.items()},
            "statistics": {
                ch: {"mean": s.mean, "std": s.std, "min": s.min, "max": s.max}
                for ch, s in snapshot.statistics.items()
            },
        })

    def send_integrated(self, result: IntegratedResult) -> bool:
        """Send the headline numbers of an integrated analysis"""
        return self._send(integrated_message(result))

    def _send(self, message: Dict[str, Any]) -> bool:
        if self.socket is None:
            return False

        try:
            json_str = json.dumps(message)
            self.socket.sendto(json_str.encode('utf-8'), (self.host, self.port))
            return True

        except Exception as e:
            logging.error(f"Failed to send UDP message: {e}")
            return False

    def close(self):
        """Close UDP socket"""
        if self.socket:
            self.socket.close()
            self.socket = None


def _score(score: ConditionScore) -> Dict[str, Any]:
    return {"score": round(score.score, 3), "severity": score.severity}


def integrated_message(result: IntegratedResult) -> Dict[str, Any]:
    """JSON-ready summary of an integrated analysis"""
    message = {"type": "integrated", "t": result.timestamp}
    if result.depression is not None:
        message["alpha_asymmetry"] = result.depression.alpha_asymmetry
        message["alpha_theta_ratio"] = result.depression.alpha_theta_ratio
    if result.epilepsy is not None:
        message["spike_counts"] = {ch: len(s) for ch, s in result.epilepsy.spikes.items()}
        message["abnormal_channels"] = result.epilepsy.abnormal_channels
        message["high_coherence_pairs"] = result.epilepsy.high_coherence_pairs
    if result.conditions is not None:
        message["conditions"] = {c.name: _score(c) for c in result.conditions}
    if result.neurodegenerative is not None:
        neuro = result.neurodegenerative
        message["neurodegenerative"] = {
            "alzheimers": _score(neuro.alzheimers),
            "parkinsons": _score(neuro.parkinsons),
            "vascular_dementia": _score(neuro.vascular_dementia),
            "lewy_bodies": _score(neuro.lewy_bodies),
        }
    return message
