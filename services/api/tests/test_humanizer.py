import random

import httpx
import pytest

from app.core.errors import InvalidOptions
from app.schemas.humanize import HumanizationOptions, Intensity, Tone
from app.services.detector import DetectorService
from app.services.humanizer import MODE_LOCAL, MODE_SERVICE, HumanizerService
from app.services.refinement import humanize
from app.services.rewrite_client import RewriteClient, RewriteServiceConfig

SOURCE_TEXT = (
    "Furthermore, the committee reviewed the proposal in detail. Moreover, the budget plays a crucial role "
    "in next year's planning. The members will utilize the findings to commence a new review cycle. "
    "In conclusion, the process is not finished yet."
)


def _service_config(**overrides) -> RewriteServiceConfig:
    values = {
        "api_key": "gsk_test_key_123456",
        "base_url": "https://rewrite.test/v1",
        "model": "test-model",
        "available": True,
    }
    values.update(overrides)
    return RewriteServiceConfig(**values)


def _recording_transport(response: httpx.Response, seen: list) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return response

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_unconfigured_service_runs_locally_end_to_end():
    seen: list = []
    humanizer = HumanizerService(
        RewriteClient(RewriteServiceConfig.disabled(), transport=_recording_transport(httpx.Response(200), seen)),
        rng=random.Random(3),
    )

    report = await humanize(
        SOURCE_TEXT,
        {"tone": "casual", "intensity": "light", "preserveTechnical": True, "addPersonalTouches": False},
        humanizer=humanizer,
        detector=DetectorService(),
    )

    assert seen == []
    assert report.mode == MODE_LOCAL
    assert "local_fallback" in report.quality_flags
    assert 1 <= report.iterations <= 3
    assert len(report.changes_applied) == report.iterations
    assert report.final_text.strip()
    if report.outcome != "max_iterations":
        assert report.meaning_similarity >= 0.65


@pytest.mark.asyncio
async def test_service_output_is_used_when_available():
    seen: list = []
    response = httpx.Response(
        200, json={"choices": [{"message": {"content": "The committee looked at the plan and said yes to it."}}]}
    )
    humanizer = HumanizerService(RewriteClient(_service_config(), transport=_recording_transport(response, seen)))

    result = await humanizer.transform(SOURCE_TEXT, HumanizationOptions(intensity=Intensity.LIGHT))

    assert result.mode == MODE_SERVICE
    assert result.degraded_reason is None
    assert "committee looked at the plan" in result.text
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_service_failure_falls_back_to_local_pipeline():
    seen: list = []
    humanizer = HumanizerService(
        RewriteClient(_service_config(), transport=_recording_transport(httpx.Response(503, text="busy"), seen)),
        rng=random.Random(2),
    )

    result = await humanizer.transform(SOURCE_TEXT, HumanizationOptions())

    assert len(seen) == 1
    assert result.mode == MODE_LOCAL
    assert result.degraded_reason == "http_error"
    assert "Moreover" not in result.text


@pytest.mark.asyncio
async def test_oversized_input_skips_service():
    seen: list = []
    humanizer = HumanizerService(
        RewriteClient(_service_config(max_input_chars=20), transport=_recording_transport(httpx.Response(200), seen)),
        rng=random.Random(4),
    )

    result = await humanizer.transform(SOURCE_TEXT, HumanizationOptions())

    assert seen == []
    assert result.mode == MODE_LOCAL
    assert result.degraded_reason == "input_too_long"


def test_summary_flags_unchanged_text():
    humanizer = HumanizerService(RewriteClient(RewriteServiceConfig.disabled()))

    summary = humanizer.summarize(SOURCE_TEXT, SOURCE_TEXT, mode=MODE_SERVICE)

    assert summary.diff_stats.change_ratio == 0.0
    assert summary.meaning_similarity == 1.0
    assert summary.quality_flags == ["minimal_change"]


def test_summary_flags_drift_and_compression():
    humanizer = HumanizerService(RewriteClient(RewriteServiceConfig.disabled()))

    summary = humanizer.summarize(SOURCE_TEXT, "Totally different.", mode=MODE_LOCAL)

    assert {"over_compression", "local_fallback", "meaning_drift"} <= set(summary.quality_flags)
    assert "moreover" in summary.patterns_removed


@pytest.mark.parametrize(
    "options",
    [{"tone": "pirate"}, {"intensity": "extreme"}, {"unknown": True}, "casual"],
)
def test_invalid_options_rejected(options):
    with pytest.raises(InvalidOptions):
        HumanizationOptions.coerce(options)


def test_options_accept_camel_case_aliases():
    options = HumanizationOptions.coerce({"tone": "academic", "preserveTechnical": False, "addPersonalTouches": True})

    assert options.tone == Tone.ACADEMIC
    assert options.preserve_technical is False
    assert options.add_personal_touches is True
    assert options.intensity == Intensity.MEDIUM


def test_escalation_saturates_at_aggressive():
    options = HumanizationOptions(intensity=Intensity.MEDIUM)

    assert options.escalated().intensity == Intensity.AGGRESSIVE
    assert options.escalated().escalated().intensity == Intensity.AGGRESSIVE
