"""Park-Miller pseudo-random generator used by the system-call stress driver."""

_MASK64 = 0xFFFFFFFFFFFFFFFF
RAND_RANGE = 0x7FFFFFFE  # results lie in [0, RAND_RANGE)


def do_rand(ctx):
    """Advance the generator state ``ctx`` and return the new state.

    Computes (7**5 * x) mod (2**31 - 1) without overflowing 31 bits; the
    new state is also the random value, in [0, 0x7ffffffd].
    """
    x = ((ctx & _MASK64) % 0x7FFFFFFE) + 1
    hi, lo = divmod(x, 127773)
    x = 16807 * lo - 2836 * hi
    if x < 0:
        x += 0x7FFFFFFF
    return x - 1


class Rand:
    """Stateful generator; the stress driver seeds it with 1."""

    def __init__(self, seed=1):
        self.state = seed & _MASK64

    def rand(self):
        """Next random value."""
        self.state = do_rand(self.state)
        return self.state

    def sequence(self, n, modulus=None):
        """Yield ``n`` values, each reduced modulo ``modulus`` when given."""
        for _ in range(n):
            value = self.rand()
            yield value if modulus is None else value % modulus