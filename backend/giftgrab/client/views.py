# Overview: Immutable client-side views of server payloads.

from __future__ import annotations

from dataclasses import dataclass, replace

from ..models import ORDER_COMPLETE, ORDER_PENDING


@dataclass(frozen=True)
class PersonView:
    public_id: str
    first_name: str | None = None
    last_name: str | None = None
    display_name: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "PersonView":
        return cls(
            public_id=data["public_id"],
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            display_name=data.get("display_name") or data["public_id"],
        )

    def to_dict(self) -> dict:
        return {
            "public_id": self.public_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "display_name": self.display_name,
        }


@dataclass(frozen=True)
class GiftView:
    """A gift as the client sees it. Satisfies claim_service.GiftLike."""

    public_id: str
    owner_public_id: str
    owner_name: str = ""
    applicant_public_id: str | None = None
    order_public_id: str | None = None

    @property
    def is_claimed(self) -> bool:
        return self.applicant_public_id is not None

    @classmethod
    def from_api(cls, data: dict) -> "GiftView":
        """Build from Gift.to_dict()."""
        owner = data.get("owner") or {}
        applicant = data.get("applicant") or {}
        return cls(
            public_id=data["public_id"],
            owner_public_id=owner["public_id"],
            owner_name=owner.get("display_name", ""),
            applicant_public_id=applicant.get("public_id"),
            order_public_id=data.get("order_public_id"),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "GiftView":
        return cls(**data)

    def to_dict(self) -> dict:
        return {
            "public_id": self.public_id,
            "owner_public_id": self.owner_public_id,
            "owner_name": self.owner_name,
            "applicant_public_id": self.applicant_public_id,
            "order_public_id": self.order_public_id,
        }


@dataclass(frozen=True)
class OrderLineView:
    gift_public_id: str
    owner_public_id: str
    claim_status: str

    def to_dict(self) -> dict:
        return {
            "gift_public_id": self.gift_public_id,
            "owner_public_id": self.owner_public_id,
            "claim_status": self.claim_status,
        }


@dataclass(frozen=True)
class OrderView:
    public_id: str
    order_id: str
    status: str
    applicant: PersonView
    lines: tuple[OrderLineView, ...] = ()
    confirmed_by_approver: PersonView | None = None
    reconciliation_required: bool = False

    @property
    def is_pending(self) -> bool:
        return self.status == ORDER_PENDING

    @property
    def gift_public_ids(self) -> list[str]:
        return [line.gift_public_id for line in self.lines]

    def confirmed_by(self, approver: PersonView) -> "OrderView":
        return replace(self, status=ORDER_COMPLETE, confirmed_by_approver=approver)

    @classmethod
    def from_api(cls, data: dict) -> "OrderView":
        """Build from Order.to_dict()."""
        approver = data.get("confirmed_by_approver")
        return cls(
            public_id=data["public_id"],
            order_id=data["order_id"],
            status=data["status"],
            applicant=PersonView.from_dict(data["applicant"]),
            lines=tuple(
                OrderLineView(
                    gift_public_id=g["public_id"],
                    owner_public_id=(g.get("owner") or {}).get("public_id", ""),
                    claim_status=g.get("claim_status", ""),
                )
                for g in data.get("gifts") or []
            ),
            confirmed_by_approver=PersonView.from_dict(approver) if approver else None,
            reconciliation_required=bool(data.get("reconciliation_required")),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "OrderView":
        approver = data.get("confirmed_by_approver")
        return cls(
            public_id=data["public_id"],
            order_id=data["order_id"],
            status=data["status"],
            applicant=PersonView.from_dict(data["applicant"]),
            lines=tuple(OrderLineView(**line) for line in data.get("lines") or []),
            confirmed_by_approver=PersonView.from_dict(approver) if approver else None,
            reconciliation_required=bool(data.get("reconciliation_required")),
        )

    def to_dict(self) -> dict:
        return {
            "public_id": self.public_id,
            "order_id": self.order_id,
            "status": self.status,
            "applicant": self.applicant.to_dict(),
            "lines": [line.to_dict() for line in self.lines],
            "confirmed_by_approver": (
                self.confirmed_by_approver.to_dict() if self.confirmed_by_approver else None
            ),
            "reconciliation_required": self.reconciliation_required,
        }
