class EvosnakeError(Exception):
    """Base for all evosnake exceptions."""

    pass


class InvalidGenomeShape(EvosnakeError, AssertionError):
    """Genome length does not match the network topology.

    Raised when a network is built, never per inference call. Seeing it means
    a crossover or mutation produced a genome of the wrong size.
    """

    pass


class InvalidConfiguration(EvosnakeError, ValueError):
    """Configuration values outside their valid domain, rejected before training."""

    pass
