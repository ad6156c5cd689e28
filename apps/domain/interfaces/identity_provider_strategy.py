from abc import ABC, abstractmethod


class IdentityProviderStrategy(ABC):
    @abstractmethod
    def verify(self, credential: str) -> str:
        """Returns the verified, lower-cased e-mail behind a one-time credential."""
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        pass
