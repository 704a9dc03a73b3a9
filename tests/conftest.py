"""Shared fixtures: sample recordings and loguru capture."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Generator

SAMPLE_ACMI = r"""FileType=text/acmi/tacview
FileVersion=2.2
0,ReferenceTime=2011-06-02T05:00:00Z
0,RecordingTime=2011-06-02T06:15:30Z,Title=Test\, mission
// initial positions
1,T=10.0|20.0|100.0,Name=F-16C,Type=Air+FixedWing,Color=Blue
2,T=1|2|3|4|5,Name=Tank,Comment=first line\
second line
#10
1,T=10.0|20.0|200.0
2,T=||4||
#20.5
1,Name=F-16C-2
#30
-2
"""


@pytest.fixture
def sample_acmi() -> str:
    """A small recording touching every record kind."""
    return SAMPLE_ACMI


@pytest.fixture
def captured_logs() -> Generator[list[str], None, None]:
    """Collect ``LEVEL:message`` strings emitted through loguru."""
    messages: list[str] = []

    def _sink(msg):  # type: ignore[override]
        messages.append(f"{msg.record['level'].name}:{msg.record['message']}")

    sink_id = logger.add(_sink, level="DEBUG")
    try:
        yield messages
    finally:
        logger.remove(sink_id)
