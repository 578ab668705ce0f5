"""Normalise a platform cumulative step counter to session-relative steps.

Platform counters report steps since device boot.  The first reading seen in
a session becomes the baseline; later readings are reported relative to it.
A reading below the baseline means the device rebooted and its counter
restarted, so the counter re-baselines and keeps counting on top of what the
session already had.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("motionfuse.tracking.steps")


class StepCounter:
    """Session-relative view of a cumulative platform step counter."""

    def __init__(self) -> None:
        self._offset: int | None = None
        self._carried = 0
        self._steps = 0

    @property
    def has_reported(self) -> bool:
        """True once at least one platform reading has been accepted."""
        return self._offset is not None

    @property
    def steps(self) -> int:
        return self._steps

    def update(self, cumulative_steps: int) -> int:
        """Fold in one cumulative reading and return session steps.

        Args:
            cumulative_steps: Counter value since device boot.

        Returns:
            Steps counted since the session started (never decreasing).
        """
        if cumulative_steps < 0:
            logger.debug("Ignoring negative step counter value %d", cumulative_steps)
            return self._steps

        if self._offset is None:
            self._offset = cumulative_steps
        elif cumulative_steps < self._offset + (self._steps - self._carried):
            # Counter went backwards: device reboot
            logger.info(
                "Step counter reset detected (%d < baseline); re-baselining at %d steps",
                cumulative_steps,
                self._steps,
            )
            self._carried = self._steps
            self._offset = cumulative_steps

        self._steps = max(self._steps, self._carried + cumulative_steps - self._offset)
        return self._steps

    def reset(self) -> None:
        self._offset = None
        self._carried = 0
        self._steps = 0
