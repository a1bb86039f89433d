"""Scenario catalog for the recognize tool.

Each scenario is one invocation of the tool plus the text its output must
contain. Sync modes print ``Transcription:  <text>`` with two spaces while
async and streaming modes print a single space; the expectations keep that
difference verbatim.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from src.harness.provisioner import SuiteContext

WORD_TIMING_PATTERN = re.compile(r"\d+\.\d+ secs - \d+\.\d+ secs")

AUDIO_RAW = "audio.raw"
GOOGLE_GNOME_WAV = "Google_Gnome.wav"
COMMERCIAL_MONO_WAV = "commercial_mono.wav"

BROOKLYN_TEXT = "how old is the Brooklyn Bridge"
WEATHER_TEXT = "the weather outside is sunny"
PUNCTUATED_TEXT = "Terrific. It's on the way."
ENHANCED_TEXT = "Chrome"

SYNC_TRANSCRIPTION = f"Transcription:  {BROOKLYN_TEXT}"
ASYNC_TRANSCRIPTION = f"Transcription: {BROOKLYN_TEXT}"


@dataclass(frozen=True)
class Scenario:
    """One (command invocation, expected output) test case."""

    name: str
    mode: str
    fixture: str
    expected: Tuple[str, ...]
    remote: bool = False
    model: Optional[str] = None
    expect_word_timing: bool = False

    def target(self, ctx: SuiteContext) -> str:
        if self.remote:
            return ctx.gcs_uri(self.fixture)
        return str(ctx.local_path(self.fixture))

    def arguments(self, ctx: SuiteContext) -> List[str]:
        """Return the argv tail: ``<mode> <target> [<model>]``."""
        args = [self.mode, self.target(ctx)]
        if self.model:
            args.append(self.model)
        return args


SCENARIOS: Tuple[Scenario, ...] = (
    Scenario("sync", "sync", AUDIO_RAW, (SYNC_TRANSCRIPTION,)),
    Scenario("sync-gcs", "sync-gcs", AUDIO_RAW, (SYNC_TRANSCRIPTION,), remote=True),
    Scenario("sync-words", "sync-words", AUDIO_RAW, (SYNC_TRANSCRIPTION,), expect_word_timing=True),
    Scenario("async", "async", AUDIO_RAW, (ASYNC_TRANSCRIPTION,)),
    Scenario("async-gcs", "async-gcs", AUDIO_RAW, (ASYNC_TRANSCRIPTION,), remote=True),
    Scenario(
        "async-gcs-words",
        "async-gcs-words",
        AUDIO_RAW,
        (ASYNC_TRANSCRIPTION,),
        remote=True,
        expect_word_timing=True,
    ),
    Scenario("stream", "stream", AUDIO_RAW, (ASYNC_TRANSCRIPTION,)),
    Scenario("sync-model", "sync-model", GOOGLE_GNOME_WAV, ("Transcription:", WEATHER_TEXT), model="video"),
    Scenario(
        "sync-model-gcs",
        "sync-model-gcs",
        GOOGLE_GNOME_WAV,
        ("Transcription:", WEATHER_TEXT),
        remote=True,
        model="video",
    ),
    Scenario("sync-auto-punctuation", "sync-auto-punctuation", COMMERCIAL_MONO_WAV, (PUNCTUATED_TEXT,)),
    Scenario("sync-enhanced-model", "sync-enhanced-model", COMMERCIAL_MONO_WAV, (ENHANCED_TEXT,)),
)


def get_scenario(name: str) -> Scenario:
    for scenario in SCENARIOS:
        if scenario.name == name:
            return scenario
    raise KeyError(f"Unknown scenario '{name}'")


def select_scenarios(names: Optional[Iterable[str]] = None) -> List[Scenario]:
    """Return the named scenarios in catalog order, or all of them."""
    if not names:
        return list(SCENARIOS)
    wanted = {get_scenario(name).name for name in names}
    return [scenario for scenario in SCENARIOS if scenario.name in wanted]


def required_fixtures(scenarios: Iterable[Scenario]) -> List[str]:
    return list(dict.fromkeys(scenario.fixture for scenario in scenarios))


def required_uploads(scenarios: Iterable[Scenario]) -> List[str]:
    """Fixtures that must exist in the bucket for the remote scenarios."""
    return list(dict.fromkeys(scenario.fixture for scenario in scenarios if scenario.remote))
