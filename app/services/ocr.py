"""
Client OCR pour l'analyse des factures et tickets de caisse.

Utilise l'API REST d'un service d'analyse de documents (modeles
prebuilt-receipt / prebuilt-invoice):
1. POST du document sur /documentModels/{model}:analyze
2. Polling de l'URL Operation-Location jusqu'a "succeeded"
3. Extraction des champs du premier document analyse

Usage:
    client = OcrClient.from_settings(get_settings())
    extraction = client.analyze(content, content_type="application/pdf")
"""
import logging
import re
import time
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional

import httpx

from app.core.exceptions import ExternalServiceError, ServiceUnavailable

logger = logging.getLogger(__name__)

RECEIPT_MODEL = "prebuilt-receipt"
INVOICE_MODEL = "prebuilt-invoice"
UNKNOWN_SUPPLIER = "Unknown Supplier"
UNKNOWN_ITEM = "Unknown Item"

# "Nom du plat\n3 x 28.00" ou "Nom du plat\n3 × 28,00€"
QUANTITY_IN_DESCRIPTION = re.compile(r"^(.+?)\n(\d+)\s*[x×]\s*([\d.,]+)\s*€?", re.IGNORECASE)
# "Article    3 x 28.00€    84.00€"
TEXT_LINE_WITH_QUANTITY = re.compile(
    r"^(.+?)\s+(\d+)\s*[x×]\s*([\d,.]+)\s*€?\s*([\d,.]+)\s*€?$", re.IGNORECASE
)
# "Article    12.50€"
TEXT_LINE_WITH_PRICE = re.compile(r"^(.+?)\s+([\d,.]+)\s*€$", re.IGNORECASE)


class OcrNotConfiguredError(ServiceUnavailable):
    """Endpoint ou cle OCR manquant."""
    error_code = "OCR_NOT_CONFIGURED"

    def __init__(self):
        super().__init__(message="OCR service is not configured (OCR_ENDPOINT / OCR_API_KEY)")


class ExtractionError(ExternalServiceError):
    """Le service OCR a echoue ou n'a rien trouve dans le document."""
    error_code = "EXTRACTION_FAILED"


@dataclass
class ExtractedLineItem:
    description: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    total_price: Decimal


@dataclass
class DocumentExtraction:
    """Resultat structure d'une analyse OCR."""
    supplier_name: str
    date: datetime
    total_amount: Decimal
    items: List[ExtractedLineItem] = field(default_factory=list)
    supplier_email: Optional[str] = None
    supplier_phone: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Version JSON-compatible (stockee dans Bill.raw_content)."""
        data = asdict(self)
        data["date"] = self.date.isoformat()
        data["total_amount"] = str(self.total_amount)
        data["items"] = [
            {
                **item,
                "quantity": str(item["quantity"]),
                "unit_price": str(item["unit_price"]),
                "total_price": str(item["total_price"]),
            }
            for item in data["items"]
        ]
        return data


# =============================================================================
# Parsing des champs
# =============================================================================

def _to_decimal(value: Any, default: str = "0") -> Decimal:
    if value is None or value == "":
        return Decimal(default)
    if isinstance(value, str):
        value = value.replace(",", ".")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal(default)


def _content(fields: Dict[str, Any], *names: str) -> Optional[str]:
    for name in names:
        content = (fields.get(name) or {}).get("content")
        if content:
            return content
    return None


def _number(fields: Dict[str, Any], *names: str) -> Optional[Decimal]:
    """Valeur numerique d'un champ (number, integer ou currency)."""
    for name in names:
        data = fields.get(name) or {}
        if "valueCurrency" in data:
            amount = (data["valueCurrency"] or {}).get("amount")
            if amount is not None:
                return _to_decimal(amount)
        for key in ("valueNumber", "valueInteger"):
            if data.get(key) is not None:
                return _to_decimal(data[key])
    return None


def _date(fields: Dict[str, Any], *names: str) -> Optional[datetime]:
    for name in names:
        value = (fields.get(name) or {}).get("valueDate")
        if value:
            try:
                return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)
            except ValueError:
                logger.debug(f"Date OCR illisible: {value}")
    return None


def guess_unit(text: Optional[str]) -> str:
    """
    Devine l'unite a partir d'un libelle (kg, L, g); PC par defaut.
    """
    if not text:
        return "PC"
    lowered = text.lower()
    if re.search(r"\d\s*kg\b|\bkg\b|kilo", lowered):
        return "KG"
    if re.search(r"\d\s*(l|cl|ml)\b|\b(l|litre|liter)s?\b", lowered):
        return "L"
    if re.search(r"\d\s*g\b|\bg\b|gram", lowered):
        return "G"
    return "PC"


def _split_description(description: str):
    """Extrait (nom, quantite, prix unitaire) d'un libelle multi-lignes."""
    match = QUANTITY_IN_DESCRIPTION.match(description)
    if not match:
        return None
    name = match.group(1).strip()
    quantity = _to_decimal(match.group(2), default="1") or Decimal("1")
    unit_price = _to_decimal(match.group(3))
    return name, quantity, unit_price


def _parse_item(properties: Dict[str, Any], invoice: bool) -> ExtractedLineItem:
    description = _content(properties, "Description") or UNKNOWN_ITEM
    quantity = _number(properties, "Quantity") or Decimal("1")
    total_price = _number(properties, "Amount" if invoice else "TotalPrice", "TotalPrice") or Decimal("0")
    unit_price = _number(properties, "UnitPrice") if invoice else None
    unit_source = _content(properties, "Unit") if invoice else description

    split = _split_description(description)
    if split:
        description, quantity, parsed_price = split
        if parsed_price > 0:
            unit_price = parsed_price
            unit_source = _content(properties, "Unit") if invoice else None

    if not unit_price:
        unit_price = total_price / quantity if quantity > 0 else total_price

    return ExtractedLineItem(
        description=description,
        quantity=quantity,
        unit=guess_unit(unit_source),
        unit_price=unit_price,
        total_price=total_price,
    )


def _parse_text_lines(content: str) -> List[ExtractedLineItem]:
    """Repli: lignes "Article  2 x 3.00  6.00" ou "Article  6.00€" du texte brut."""
    items = []
    for line in content.split("\n"):
        line = line.strip()
        match = TEXT_LINE_WITH_QUANTITY.match(line)
        if match:
            description, qty, unit_price, total = match.groups()
            items.append(ExtractedLineItem(
                description=description.strip(),
                quantity=_to_decimal(qty, default="1"),
                unit="PC",
                unit_price=_to_decimal(unit_price),
                total_price=_to_decimal(total),
            ))
            continue
        match = TEXT_LINE_WITH_PRICE.match(line)
        if match:
            description, price = match.groups()
            total = _to_decimal(price)
            items.append(ExtractedLineItem(
                description=description.strip(),
                quantity=Decimal("1"),
                unit="PC",
                unit_price=total,
                total_price=total,
            ))
    return items


def parse_analyze_result(result: Dict[str, Any], invoice: bool = False) -> DocumentExtraction:
    """
    Convertit le JSON analyzeResult en DocumentExtraction.

    Raises:
        ExtractionError: si aucun document n'a ete reconnu
    """
    documents = result.get("documents") or []
    if not documents:
        kind = "invoice" if invoice else "receipt"
        raise ExtractionError(f"No {kind} data found in document")

    fields = documents[0].get("fields") or {}

    if invoice:
        supplier_name = _content(fields, "VendorName", "MerchantName")
        supplier_email = _content(fields, "VendorEmail")
        supplier_phone = _content(fields, "VendorPhoneNumber", "VendorPhone")
        date = _date(fields, "InvoiceDate")
        total = _number(fields, "InvoiceTotal", "Total")
    else:
        supplier_name = _content(fields, "MerchantName", "VendorName")
        supplier_email = _content(fields, "MerchantEmail", "VendorEmail")
        supplier_phone = _content(fields, "MerchantPhoneNumber", "VendorPhoneNumber")
        date = _date(fields, "TransactionDate")
        total = _number(fields, "Total")

    items = [
        _parse_item((entry.get("valueObject") or {}), invoice)
        for entry in (fields.get("Items") or {}).get("valueArray") or []
    ]
    if not items and not invoice and result.get("content"):
        items = _parse_text_lines(result["content"])

    return DocumentExtraction(
        supplier_name=supplier_name or UNKNOWN_SUPPLIER,
        supplier_email=supplier_email,
        supplier_phone=supplier_phone,
        date=date or datetime.now(timezone.utc),
        total_amount=total or Decimal("0"),
        items=items,
    )


# =============================================================================
# Client HTTP
# =============================================================================

class OcrClient:
    """
    Client synchrone du service d'analyse de documents.

    Le transport httpx et la fonction d'attente sont injectables
    (httpx.MockTransport en test).
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        api_version: str = "2023-07-31",
        poll_interval: float = 1.0,
        max_polls: int = 60,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.endpoint = (endpoint or "").rstrip("/")
        self.api_key = api_key
        self.api_version = api_version
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.timeout = timeout
        self.transport = transport
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings) -> "OcrClient":
        return cls(
            endpoint=settings.OCR_ENDPOINT,
            api_key=settings.OCR_API_KEY,
            api_version=settings.OCR_API_VERSION,
            poll_interval=settings.OCR_POLL_INTERVAL,
            max_polls=settings.OCR_MAX_POLLS,
            timeout=httpx.Timeout(settings.HTTP_TIMEOUT, connect=settings.HTTP_CONNECT_TIMEOUT),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.api_key)

    @staticmethod
    def model_for(content_type: Optional[str]) -> str:
        """Les PDF sont analyses comme factures, le reste comme tickets."""
        content_type = (content_type or "").lower()
        if "pdf" in content_type or "invoice" in content_type:
            return INVOICE_MODEL
        return RECEIPT_MODEL

    def analyze(
        self,
        content: bytes,
        content_type: Optional[str] = None,
        model: Optional[str] = None,
    ) -> DocumentExtraction:
        """
        Analyse un document et retourne les donnees extraites.

        Raises:
            OcrNotConfiguredError: endpoint ou cle absents
            ExtractionError: echec HTTP, analyse en echec ou sans document
        """
        if not self.is_configured:
            raise OcrNotConfiguredError()

        model = model or self.model_for(content_type)
        logger.info(f"Analyse OCR ({model}, {len(content)} octets)")

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                operation_url = self._start(client, model, content, content_type)
                result = self._poll(client, operation_url)
        except httpx.TimeoutException:
            logger.error("OCR timeout")
            raise ExtractionError("OCR service timed out")
        except httpx.HTTPError as e:
            logger.error(f"OCR HTTP error: {e}")
            raise ExtractionError("Failed to communicate with the OCR service")

        return parse_analyze_result(result, invoice=(model == INVOICE_MODEL))

    def _start(self, client: httpx.Client, model: str, content: bytes, content_type: Optional[str]) -> str:
        url = f"{self.endpoint}/formrecognizer/documentModels/{model}:analyze"
        response = client.post(
            url,
            params={"api-version": self.api_version},
            headers={
                "Ocp-Apim-Subscription-Key": self.api_key,
                "Content-Type": content_type or "application/octet-stream",
            },
            content=content,
        )
        response.raise_for_status()
        operation_url = response.headers.get("Operation-Location")
        if not operation_url:
            raise ExtractionError("OCR service did not return an operation location")
        return operation_url

    def _poll(self, client: httpx.Client, operation_url: str) -> Dict[str, Any]:
        headers = {"Ocp-Apim-Subscription-Key": self.api_key}
        for _ in range(self.max_polls):
            response = client.get(operation_url, headers=headers)
            response.raise_for_status()
            body = response.json()
            status = (body.get("status") or "").lower()

            if status == "succeeded":
                return body.get("analyzeResult") or {}
            if status == "failed":
                error = (body.get("error") or {}).get("message", "analysis failed")
                logger.warning(f"Analyse OCR en echec: {error}")
                raise ExtractionError(f"OCR analysis failed: {error}")

            self._sleep(self.poll_interval)

        raise ExtractionError("OCR analysis did not complete in time")
