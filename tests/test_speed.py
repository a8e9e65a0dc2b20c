from zlutil.speed import BytesSpeed

MB = 1024 * 1024


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_initial_speed_is_zero():
    clock = FakeClock()
    assert BytesSpeed(clock).get_speed() == 0


def test_speed_after_one_second():
    clock = FakeClock()
    speed = BytesSpeed(clock)
    nbytes = 500
    speed.add(nbytes)
    clock.now = 1.0
    assert speed.get_speed() == nbytes


def test_reading_within_a_second_returns_previous_value():
    clock = FakeClock()
    speed = BytesSpeed(clock)
    speed.add(300)
    clock.now = 1.0
    first = speed.get_speed()
    speed.add(900)
    clock.now = 1.5
    assert speed.get_speed() == first


def test_iadd_returns_same_object_and_counts():
    clock = FakeClock()
    speed = BytesSpeed(clock)
    original = speed
    speed += 700
    assert speed is original
    clock.now = 1.0
    assert speed.get_speed() == 700


def test_large_write_triggers_computation():
    clock = FakeClock()
    speed = BytesSpeed(clock)
    nbytes = 4 * MB
    clock.now = 2.0
    speed += nbytes
    assert speed.get_speed() == nbytes // 2


def test_large_write_with_no_elapsed_time_keeps_counting():
    clock = FakeClock()
    speed = BytesSpeed(clock)
    nbytes = 2 * MB
    speed.add(nbytes)
    clock.now = 1.0
    assert speed.get_speed() == nbytes