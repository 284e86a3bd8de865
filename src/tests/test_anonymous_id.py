from spectacle.core.ids import generate_anonymous_id, is_anonymous_id
from spectacle.core.rng import RNG


class MinRng:
    def randint(self, a: int, b: int) -> int:
        return a


def test_anonymous_id_is_deterministic_for_seed():
    assert generate_anonymous_id(RNG(123)) == generate_anonymous_id(RNG(123))


def test_anonymous_id_segment_widths():
    for seed in range(50):
        anon = generate_anonymous_id(RNG(seed))
        assert is_anonymous_id(anon), anon
        assert [len(s) for s in anon.split("-")] == [8, 4, 4, 4, 12]


def test_lower_bounds_keep_fixed_width():
    assert generate_anonymous_id(MinRng()) == "10000000-1000-1000-1000-100000000000"
