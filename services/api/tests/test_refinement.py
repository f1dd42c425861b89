import pytest

from app.core.errors import InvalidOptions, TooShort
from app.schemas.humanize import HumanizationConfidence, HumanizationOptions, Intensity
from app.services import refinement
from app.services.detector import DetectorService
from app.services.humanizer import MODE_LOCAL, HumanizerService, RewritePass
from app.services.refinement import RefinementLoop, humanize, quick_ai_estimate
from app.services.rewrite_client import RewriteClient, RewriteServiceConfig

TEXT = (
    "The committee reviewed the proposal and approved the budget for next year. "
    "The members agreed on every point after a long discussion."
)


class FixedScoreDetector(DetectorService):
    def __init__(self, score: int) -> None:
        super().__init__()
        self.score = score

    def evaluate(self, text):
        return super().evaluate(text).model_copy(update={"overall_score": self.score})


class AppendingHumanizer(HumanizerService):
    """Adds one word per pass so meaning stays intact."""

    def __init__(self, suffix: str = " indeed") -> None:
        super().__init__(RewriteClient(RewriteServiceConfig.disabled()))
        self.suffix = suffix
        self.calls: list[tuple[str, Intensity, float | None]] = []

    async def transform(self, text, options, *, timeout=None):
        self.calls.append((text, options.intensity, timeout))
        return RewritePass(text + self.suffix, MODE_LOCAL)


class ReplacingHumanizer(AppendingHumanizer):
    async def transform(self, text, options, *, timeout=None):
        self.calls.append((text, options.intensity, timeout))
        return RewritePass("Completely unrelated words only.", MODE_LOCAL)


def _loop(humanizer: HumanizerService, score: int) -> RefinementLoop:
    return RefinementLoop(humanizer, FixedScoreDetector(score))


@pytest.mark.asyncio
async def test_stubborn_detector_stops_after_three_iterations(monkeypatch):
    monkeypatch.setattr(refinement, "quick_ai_estimate", lambda text: 100)
    humanizer = AppendingHumanizer()

    report = await _loop(humanizer, 90).run(TEXT, HumanizationOptions(intensity=Intensity.LIGHT), max_iterations=3)

    assert report.iterations == 3
    assert len(report.changes_applied) == 3
    assert report.changes_applied[0] == "Iteration 1: applied light humanization (local)"
    assert report.intensity_trail == [Intensity.LIGHT, Intensity.MEDIUM, Intensity.AGGRESSIVE]
    assert report.confidence == HumanizationConfidence.MODERATE_RISK
    assert report.meaning_similarity >= 0.65


@pytest.mark.asyncio
async def test_intensity_never_decreases():
    humanizer = AppendingHumanizer()

    report = await _loop(humanizer, 90).run(TEXT, HumanizationOptions(intensity=Intensity.MEDIUM), max_iterations=3)

    ranks = [intensity.rank for intensity in report.intensity_trail]
    assert ranks == sorted(ranks)
    assert report.intensity_trail[0] == Intensity.MEDIUM


@pytest.mark.asyncio
async def test_exhausted_budget_returns_best_candidate():
    humanizer = AppendingHumanizer()

    report = await _loop(humanizer, 90).run(TEXT, HumanizationOptions(intensity=Intensity.LIGHT), max_iterations=2)

    assert report.outcome == refinement.OUTCOME_EXHAUSTED
    assert report.iterations == 2
    assert report.final_text == TEXT + " indeed"
    assert report.confidence == HumanizationConfidence.MODERATE_RISK


@pytest.mark.asyncio
async def test_candidates_chain_while_meaning_holds():
    humanizer = AppendingHumanizer()

    await _loop(humanizer, 90).run(TEXT, HumanizationOptions(intensity=Intensity.LIGHT), max_iterations=2)

    assert humanizer.calls[0][0] == TEXT
    assert humanizer.calls[1][0] == TEXT + " indeed"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("score", "confidence"),
    [(20, HumanizationConfidence.UNDETECTABLE), (40, HumanizationConfidence.LOW_RISK)],
)
async def test_low_score_is_accepted_immediately(score, confidence):
    report = await _loop(AppendingHumanizer(), score).run(TEXT, HumanizationOptions())

    assert report.outcome == refinement.OUTCOME_ACCEPTED
    assert report.iterations == 1
    assert report.confidence == confidence
    assert report.final_score == score
    assert report.meaning_similarity >= 0.65


@pytest.mark.asyncio
async def test_low_quick_estimate_accepts_best(monkeypatch):
    monkeypatch.setattr(refinement, "quick_ai_estimate", lambda text: 30)

    report = await _loop(AppendingHumanizer(), 50).run(TEXT, HumanizationOptions(intensity=Intensity.LIGHT))

    assert report.outcome == refinement.OUTCOME_ACCEPTED_BEST
    assert report.iterations == 1
    assert report.confidence == HumanizationConfidence.LOW_RISK


@pytest.mark.asyncio
async def test_meaning_drift_never_wins():
    humanizer = ReplacingHumanizer()

    report = await _loop(humanizer, 20).run(TEXT, HumanizationOptions(intensity=Intensity.LIGHT), max_iterations=3)

    assert report.outcome == refinement.OUTCOME_EXHAUSTED
    assert report.final_text == TEXT
    assert report.iterations == 3
    assert all(call[0] == TEXT for call in humanizer.calls)


@pytest.mark.asyncio
async def test_session_deadline_bounds_each_call():
    humanizer = AppendingHumanizer()
    ticks = iter(range(0, 1000, 10))
    loop = RefinementLoop(humanizer, FixedScoreDetector(90), clock=lambda: float(next(ticks)))

    await loop.run(TEXT, HumanizationOptions(intensity=Intensity.LIGHT), max_iterations=3)

    timeouts = [call[2] for call in humanizer.calls]
    assert all(t <= loop.settings.rewrite_session_timeout_seconds for t in timeouts)
    assert timeouts == sorted(timeouts, reverse=True)


@pytest.mark.asyncio
async def test_humanize_validates_before_running():
    with pytest.raises(TooShort):
        await humanize("too short", humanizer=AppendingHumanizer(), detector=FixedScoreDetector(10))

    with pytest.raises(InvalidOptions):
        await humanize(TEXT, {"tone": "pirate"}, humanizer=AppendingHumanizer(), detector=FixedScoreDetector(10))


def test_quick_estimate_rewards_casual_markers():
    stiff = "Moreover, the results are final. Furthermore, the work is complete."
    casual = "Honestly, the results don't surprise me."

    assert quick_ai_estimate(stiff) == 80
    assert quick_ai_estimate(casual) == 60
