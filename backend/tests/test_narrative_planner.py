from __future__ import annotations

import pytest

from models.snapshot import (
    CallToAction,
    Ctas,
    Hero,
    Metric,
    PageType,
    PainPoint,
    SemanticSnapshot,
    SocialProof,
    Testimonial as _Testimonial,
    ValueProp,
)
from services.narrative_planner import (
    BEAT_BUILDERS,
    BeatConfig,
    create_beat,
    generate_narrative_copy,
    plan_narrative,
)


def _saas_snapshot() -> SemanticSnapshot:
    return SemanticSnapshot(
        hero=Hero(headline="Ship faster", subheadline="Deploy in seconds"),
        value_props=(
            ValueProp("Fast builds", "Incremental compilation everywhere"),
            ValueProp("Preview URLs", "Every branch gets a link"),
            ValueProp("Rollbacks", "One click to undo"),
        ),
        ctas=Ctas(primary=CallToAction("Start free trial")),
        page_type=PageType.SAAS_LANDING,
    )


def test_saas_landing_30s_splits_into_three_beats() -> None:
    narrative = plan_narrative(_saas_snapshot(), target_duration=30)

    assert narrative.structure == ("hook", "solution", "cta")
    assert [b.name for b in narrative.beats] == ["hook", "solution", "cta"]
    assert [b.duration for b in narrative.beats] == pytest.approx([3, 21, 6])
    assert sum(b.duration for b in narrative.beats) == pytest.approx(30)

    hook = narrative.beats[0]
    assert hook.shots[0].type == "establishing_wide"
    assert hook.shots[0].target == "hero"
    assert hook.captions[0].text == "Ship faster"

    solution = narrative.beats[1]
    # two feature shots at most, splitting the beat evenly
    assert len(solution.shots) == 2
    assert [s.duration for s in solution.shots] == pytest.approx([10.5, 10.5])
    assert [c.text for c in solution.captions] == ["Fast builds", "Preview URLs", "Rollbacks"]

    cta = narrative.beats[2]
    assert cta.shots[0].interaction == "click"
    assert cta.captions[0].text == "Start free trial"
    assert cta.captions[0].callout is True


@pytest.mark.parametrize("target", [5, 12, 17, 45, 60])
def test_beat_and_shot_durations_sum_to_target(target: int) -> None:
    narrative = plan_narrative(_saas_snapshot(), target_duration=target)

    assert narrative.total_duration == target
    assert sum(b.duration for b in narrative.beats) == pytest.approx(target)
    for beat in narrative.beats:
        assert sum(s.duration for s in beat.shots) == pytest.approx(beat.duration)


def test_shots_are_tagged_with_their_beat() -> None:
    narrative = plan_narrative(_saas_snapshot(), target_duration=20)
    for beat in narrative.beats:
        assert all(shot.beat == beat.name for shot in beat.shots)


def test_empty_snapshot_still_produces_every_beat() -> None:
    narrative = plan_narrative(SemanticSnapshot(), target_duration=15)

    assert len(narrative.beats) == 3
    for beat in narrative.beats:
        assert beat.shots
        assert beat.captions
    hook, solution, cta = narrative.beats
    assert hook.shots[0].target == "viewport"
    assert hook.captions[0].text == "See what's possible"
    assert solution.shots[0].type == "scroll_tour"
    assert solution.captions[0].text == "Everything you need in one place"
    assert cta.shots[0].target == "footer"
    assert cta.captions[0].text == "Get Started Today"
    assert narrative.metadata.value_props_count == 0


_BEAT_CONFIG = BeatConfig(0.5, "medium", "neutral")


@pytest.mark.parametrize("name", [*BEAT_BUILDERS, "unknown"])
def test_every_beat_builder_degrades_on_empty_snapshot(name: str) -> None:
    beat = create_beat(name, _BEAT_CONFIG, SemanticSnapshot(), index=0, target_duration=10)

    assert beat.duration == 5
    assert beat.shots
    assert beat.captions
    assert all(shot.beat == name for shot in beat.shots)
    assert sum(shot.duration for shot in beat.shots) == pytest.approx(beat.duration)


def test_unknown_beat_uses_generic_scroll_tour() -> None:
    beat = create_beat("unknown", _BEAT_CONFIG, SemanticSnapshot(hero=Hero(headline="Hi")), 0, 10)
    assert [s.type for s in beat.shots] == ["scroll_tour"]
    assert beat.captions[0].text == "Hi"


@pytest.mark.parametrize(
    ("social_proof", "expected"),
    [
        (
            SocialProof(testimonials=(_Testimonial("Love it"),), metrics=(Metric("10k+", "teams"),)),
            [("testimonial_carousel", 3.0), ("metrics_display", 2.0)],
        ),
        (SocialProof(testimonials=(_Testimonial("Love it"),)), [("testimonial_carousel", 5.0)]),
        (SocialProof(metrics=(Metric("10k+", "teams"),)), [("metrics_display", 5.0)]),
    ],
)
def test_proof_beat_splits_testimonials_and_metrics(social_proof, expected) -> None:
    snapshot = SemanticSnapshot(social_proof=social_proof)
    for name in ("proof", "social_proof"):
        beat = create_beat(name, _BEAT_CONFIG, snapshot, index=1, target_duration=10)
        assert [(s.type, s.duration) for s in beat.shots] == [
            (kind, pytest.approx(seconds)) for kind, seconds in expected
        ]
        assert len(beat.captions) == len(expected)


def test_pricing_uses_plans_template() -> None:
    snapshot = SemanticSnapshot(page_type=PageType.PRICING)
    narrative = plan_narrative(snapshot, target_duration=30)

    assert narrative.structure == ("hook", "plans", "cta")
    assert sum(b.duration for b in narrative.beats) == pytest.approx(30)


def test_unknown_page_type_falls_back_to_saas_template() -> None:
    snapshot = SemanticSnapshot(page_type=PageType.ABOUT)
    narrative = plan_narrative(snapshot, target_duration=30)
    assert narrative.structure == ("hook", "solution", "cta")


def test_captions_scale_with_beats() -> None:
    # 10s: beats round to 1/7/2 which already sum to 10, so captions keep their times
    narrative = plan_narrative(_saas_snapshot(), target_duration=10)
    assert narrative.beats[0].captions[0].start_time == pytest.approx(0.5)

    # 25s: beats round to 3/18/5 (26), rescaled by 25/26
    narrative = plan_narrative(_saas_snapshot(), target_duration=25)
    assert narrative.beats[0].captions[0].start_time == pytest.approx(0.5 * 25 / 26)


def test_narrative_copy_prefers_pain_points_and_testimonials() -> None:
    snapshot = SemanticSnapshot(
        hero=Hero(headline="Ship faster"),
        value_props=(ValueProp("Fast builds"), ValueProp("Preview URLs")),
        pain_points=(PainPoint("Deploys take forever"),),
        social_proof=SocialProof(
            testimonials=(_Testimonial("Changed how we ship", "Ada"),),
            metrics=(Metric("10k+", "teams"),),
        ),
    )
    copy = generate_narrative_copy(snapshot)

    assert copy.hook == "Ship faster"
    assert copy.problem == "Deploys take forever"
    assert copy.solution == "Fast builds. Preview URLs"
    assert copy.proof == "Changed how we ship"
    assert copy.cta == "Get Started Today"


def test_narrative_copy_derives_problem_and_proof_fallbacks() -> None:
    snapshot = SemanticSnapshot(
        value_props=(ValueProp("Fast Builds"),),
        social_proof=SocialProof(metrics=(Metric("10k+", "teams"),)),
        ctas=Ctas(primary=CallToAction("Try it")),
    )
    copy = generate_narrative_copy(snapshot)

    assert copy.problem == "Looking for fast builds?"
    assert copy.proof == "Join 10k+ satisfied users"
    assert copy.cta == "Try it"
