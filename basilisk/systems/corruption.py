"""
Corruption accumulator.

Corruption is the Basilisk's hidden hold on the command systems. It grows
every turn from weapon progress (the Project feeds it) and from lost
secrecy (more people looking means more hands on the terminals), and it
never goes down on its own. The only way back is a purge interrupt,
which the autonomy layer handles.
"""

import logging

from ..config import CorruptionConfig
from ..state.schema import MetricsState
from ..state.schemas import EventLog, events

logger = logging.getLogger(__name__)


ANOMALY_TEXT = {
    "minor": "MINOR SYSTEM ANOMALY: UNSCHEDULED PROCESS ON COMMAND NODE.",
    "major": "MAJOR SYSTEM ANOMALY: COMMAND QUEUE MODIFIED WITHOUT AUTHORIZATION.",
    "critical": "CRITICAL ANOMALY: OPERATOR CREDENTIALS NO LONGER RECOGNIZED.",
}


class CorruptionEngine:
    """Grows corruption once per turn and reports threshold crossings."""

    def __init__(self, config: CorruptionConfig | None = None):
        self.config = config or CorruptionConfig()

    def gain_for(self, metrics: MetricsState) -> int:
        """
        This turn's growth for the given metrics.

        round(progress * factor) + missing secrecy / step, minus relief
        while secrecy is still high. Never negative, and at least
        min_active_gain once the weapon program has started.
        """
        cfg = self.config
        gain = round(metrics.weapon_progress * cfg.progress_factor)
        gain += (100 - metrics.secrecy) // cfg.transparency_step
        if metrics.secrecy >= cfg.relief_threshold:
            gain -= cfg.secrecy_relief
        gain = max(0, gain)
        if metrics.weapon_progress > 0:
            gain = max(cfg.min_active_gain, gain)
        return gain

    def update(self, metrics: MetricsState, log: EventLog) -> MetricsState:
        """Apply this turn's growth in place and emit anomaly events."""
        before = metrics.corruption
        gain = self.gain_for(metrics)
        if gain:
            metrics.apply_delta("corruption", gain)

        for threshold, severity in self.crossed(before, metrics.corruption):
            log.add(
                events.ANOMALY,
                ANOMALY_TEXT.get(severity, f"SYSTEM ANOMALY ({severity.upper()})."),
                threshold=threshold,
                severity=severity,
                corruption=metrics.corruption,
            )

        logger.debug(f"Corruption {before} -> {metrics.corruption} (+{gain})")
        return metrics

    def crossed(self, before: int, after: int) -> list[tuple[int, str]]:
        """Thresholds passed on the way up, lowest first."""
        return [
            (threshold, severity)
            for threshold, severity in sorted(self.config.anomaly_thresholds.items())
            if before < threshold <= after
        ]
