import abc
import secrets

from huis.core.two_factor.exceptions import RngUnavailable


class RandomSource(abc.ABC):
    """
    Cryptographic randomness, injected so provisioning can be made
    deterministic in tests.
    """

    @abc.abstractmethod
    def random_bytes(self, length: int) -> bytes: ...

    @abc.abstractmethod
    def random_below(self, upper: int) -> int:
        """Uniform integer in [0, upper)"""
        ...


class SystemRandomSource(RandomSource):
    def random_bytes(self, length: int) -> bytes:
        try:
            return secrets.token_bytes(length)
        except (OSError, NotImplementedError) as e:
            raise RngUnavailable(context={'error': str(e)})

    def random_below(self, upper: int) -> int:
        try:
            return secrets.randbelow(upper)
        except (OSError, NotImplementedError) as e:
            raise RngUnavailable(context={'error': str(e)})
