from interviewxpert.engine.gamification import Progress, calculate_progress


def test_no_answers():
    assert calculate_progress([]) == Progress(xp=0, streak=0)


def test_single_answer_earns_base_xp():
    assert calculate_progress([0]) == Progress(xp=2, streak=0)


def test_consecutive_answers_build_a_streak():
    assert calculate_progress([0, 1, 2]) == Progress(xp=6, streak=2)


def test_gap_does_not_extend_streak():
    assert calculate_progress([0, 1, 3]) == Progress(xp=6, streak=1)


def test_streak_bonus_after_five():
    # the step from streak 5 to 6 pays the bonus
    assert calculate_progress(range(7)) == Progress(xp=7 * 2 + 5, streak=6)


def test_order_and_duplicates_do_not_matter():
    assert calculate_progress([2, 0, 1, 1]) == calculate_progress([0, 1, 2])
