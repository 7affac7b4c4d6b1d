"""
tests/unit/test_reasons.py
"""
from models.matchmaker import compute_breakdown
from models.profile import ScoreBreakdown, ScoringPolicy
from models.reasons import generate_reasons


def test_reciprocal_reason_names_both_languages(scenario_pair):
    a, b = scenario_pair
    reasons = generate_reasons(a, b, compute_breakdown(a, b))

    assert reasons[0] == (
        "You speak Spanish natively, which James is learning, "
        "and James speaks English natively, which you're learning"
    )
    assert "Located in the same area" in reasons


def test_reason_falls_back_to_generic_partner_name(profile_factory):
    a = profile_factory(native=["Spanish"], learning=["English"])
    b = profile_factory(id="u_b", native=["English"], learning=["Spanish"])
    reasons = generate_reasons(a, b, compute_breakdown(a, b))
    assert "your partner is learning" in reasons[0]


def test_co_learner_reason(profile_factory):
    a = profile_factory(native=["Polish"], learning=["Japanese", "Korean"])
    b = profile_factory(id="u_b", native=["Dutch"], learning=["Korean", "Japanese"])
    reasons = generate_reasons(a, b, compute_breakdown(a, b))
    assert reasons[0] == "Both learning Japanese, Korean"


def test_one_way_language_has_no_language_reason(profile_factory):
    a = profile_factory(native=["English"], learning=["German"])
    b = profile_factory(id="u_b", native=["Italian"], learning=["English"])
    reasons = generate_reasons(a, b, compute_breakdown(a, b))
    assert not any(r.startswith(("You speak", "Both learning")) for r in reasons)


def test_availability_and_goal_items_are_capped_at_two(profile_factory):
    slots = ["Mornings", "Evenings", "Weekends"]
    a = profile_factory(availability=slots, goals={None: ["Business", "Culture", "Travel"]})
    b = profile_factory(id="u_b", availability=slots, goals={None: ["Business", "Culture", "Travel"]})
    reasons = generate_reasons(a, b, compute_breakdown(a, b))

    assert "Both available: Mornings, Evenings" in reasons
    assert "Similar goals: Business, Culture" in reasons


def test_reasons_follow_category_order_and_stop_at_four(profile_factory):
    slots = ["Mornings", "Evenings"]
    a = profile_factory(native=["Spanish"], learning=["English"], availability=slots,
                        goals={None: ["Travel"]}, location="Madrid, Spain", sessions=30)
    b = profile_factory(id="u_b", native=["English"], learning=["Spanish"], availability=slots,
                        goals={None: ["Travel"]}, location="Madrid, Spain", sessions=30)
    breakdown = compute_breakdown(a, b)
    reasons = generate_reasons(a, b, breakdown)

    assert breakdown.activity_level == 100
    assert len(reasons) == 4
    assert reasons[1].startswith("Both available")
    assert reasons[2].startswith("Similar goals")
    assert reasons[3] == "Located in the same area"
    assert "Both active learners" not in reasons


def test_reason_thresholds_come_from_policy(profile_factory):
    a = profile_factory()
    b = profile_factory(id="u_b")
    breakdown = ScoreBreakdown(0, 50, 50, 70, 40, 50)
    policy = ScoringPolicy(reason_activity=40)
    assert generate_reasons(a, b, breakdown, policy) == ("Both active learners",)


def test_location_reason_requires_score_not_data(profile_factory):
    # Empty locations score neutral 50 and never produce a reason
    a = profile_factory()
    b = profile_factory(id="u_b")
    assert generate_reasons(a, b, compute_breakdown(a, b)) == ()
