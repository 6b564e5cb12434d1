from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class FileReference:
    id: str = ""
    description: str = ""
    is_electronic_bid: bool = False
    link: str = ""


@dataclass(frozen=True)
class ContractType:
    type: str = ""
    subtype: str = ""


@dataclass(frozen=True)
class ContractingBody:
    name: str = ""
    link: str = ""


@dataclass(frozen=True)
class ListingRecord:
    """Data model for a single procurement notice"""
    file_reference: FileReference = field(default_factory=FileReference)
    contract_type: ContractType = field(default_factory=ContractType)
    status: str = ""
    amount: Decimal = Decimal(0)
    due_date: str = ""
    contracting_body: ContractingBody = field(default_factory=ContractingBody)

    def to_dict(self):
        return {
            "fileReference": {
                "id": self.file_reference.id,
                "description": self.file_reference.description,
                "isElectronicBid": self.file_reference.is_electronic_bid,
                "link": self.file_reference.link,
            },
            "contractType": {
                "type": self.contract_type.type,
                "subtype": self.contract_type.subtype,
            },
            "status": self.status,
            "amount": float(self.amount),
            "dueDate": self.due_date,
            "contractingBody": {
                "name": self.contracting_body.name,
                "link": self.contracting_body.link,
            },
        }


@dataclass
class TaxonomyNode:
    """One CPV classification entry; children keep document order."""
    code: str
    description: str
    depth: int = 0
    children: List["TaxonomyNode"] = field(default_factory=list)

    def to_dict(self):
        return {
            "code": self.code,
            "description": self.description,
            "level": self.depth,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True)
class FlatNode:
    """A tree-widget entry as read from the page, before nesting."""
    code: str
    description: str
    depth: int = 0
    path: Tuple[int, ...] = ()
    skipped: bool = False  # unreadable node kept only as a depth marker

    def to_node(self) -> TaxonomyNode:
        return TaxonomyNode(code=self.code, description=self.description, depth=self.depth)


@dataclass(frozen=True)
class HarvestState:
    page_num: int = 0
    pages: Tuple[Tuple[ListingRecord, ...], ...] = ()
    record_count: int = 0
    has_next: bool = True
    stop_reason: Optional[str] = None

    @property
    def records(self) -> List[ListingRecord]:
        return [record for page in self.pages for record in page]

    def with_page(self, page_records) -> "HarvestState":
        page = tuple(page_records)
        return replace(
            self,
            page_num=self.page_num + 1,
            pages=self.pages + (page,),
            record_count=self.record_count + len(page),
        )
