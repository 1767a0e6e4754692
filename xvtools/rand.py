"""The Park-Miller minimal standard pseudo-random generator."""

_U64 = 0xFFFFFFFFFFFFFFFF


def do_rand(ctx):
    """Advance state ``ctx`` and return the new state, in [0, 0x7ffffffd]."""
    x = ((ctx & _U64) % 0x7FFFFFFE) + 1
    hi, lo = divmod(x, 127773)
    x = 16807 * lo - 2836 * hi
    if x < 0:
        x += 0x7FFFFFFF
    return x - 1


class ParkMiller:
    """A stream of pseudo-random numbers from a seed."""

    def __init__(self, seed=1):
        self.state = seed

    def next(self):
        """Return the next number in the sequence."""
        self.state = do_rand(self.state)
        return self.state

    def __iter__(self):
        while True:
            yield self.next()