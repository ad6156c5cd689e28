from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional


@dataclass
class RenderedPdf:
    pdf: str
    last_y: Optional[float] = None


@dataclass
class SignerInfo:
    email: Optional[str]
    signed_at: datetime
    company_name: Optional[str] = None
    owner_name: Optional[str] = None


class AgreementRenderer(ABC):
    @abstractmethod
    def generate_base_pdf(self, context: Dict) -> RenderedPdf:
        pass

    @abstractmethod
    def embed_signature(
        self,
        base_pdf: str,
        signature: str,
        signer: SignerInfo,
        last_y: Optional[float] = None
    ) -> str:
        pass
