class KingmanError(Exception):
    """
    Superclass of all errors raised while simulating the coalescent.
    """


class InvalidRateError(KingmanError):
    """
    The rate function returned a non-positive rate. This means the block
    count bookkeeping is corrupt and the simulation cannot continue.
    """


class RandomSourceExhausted(KingmanError):
    """
    A finite random source was asked for more values than it holds.
    """
