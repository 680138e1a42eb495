"""Domain constants shared by models, services and schemas."""


class Pathway:
    """Routing classification of a job."""

    P1 = "P1"  # partner intermediary: broker -> partner -> manufacturer
    P2 = "P2"  # single external vendor
    P3 = "P3"  # multiple vendors

    ALL = (P1, P2, P3)


class RoutingType:
    """Routing choice made when the job is booked."""

    PARTNER_INTERMEDIARY = "PARTNER_INTERMEDIARY"
    DIRECT_MANUFACTURER = "DIRECT_MANUFACTURER"
    THIRD_PARTY_VENDOR = "THIRD_PARTY_VENDOR"

    ALL = (PARTNER_INTERMEDIARY, DIRECT_MANUFACTURER, THIRD_PARTY_VENDOR)
    DEFAULT = THIRD_PARTY_VENDOR


class PaperSource:
    """Who supplies the paper stock."""

    SELF_SUPPLIED = "SELF_SUPPLIED"  # print partner buys paper and marks it up
    VENDOR_SUPPLIED = "VENDOR_SUPPLIED"  # folded into the manufacturer's print cost
    CUSTOMER_SUPPLIED = "CUSTOMER_SUPPLIED"

    ALL = (SELF_SUPPLIED, VENDOR_SUPPLIED, CUSTOMER_SUPPLIED)
    DEFAULT = SELF_SUPPLIED


class JobStatus:
    """Commercial status of a job."""

    ACTIVE = "ACTIVE"
    PAID = "PAID"
    CANCELLED = "CANCELLED"

    ALL = (ACTIVE, PAID, CANCELLED)


class JobMetaType:
    """Top-level job family, drives the type code."""

    MAILING = "MAILING"
    PRINT = "PRINT"

    ALL = (MAILING, PRINT)


class MailFormat:
    """Mail piece format for mailing jobs."""

    SELF_MAILER = "SELF_MAILER"
    POSTCARD = "POSTCARD"
    ENVELOPE = "ENVELOPE"

    ALL = (SELF_MAILER, POSTCARD, ENVELOPE)


class JobType:
    """Finished-product type for non-mailing jobs."""

    FLAT = "FLAT"
    FOLDED = "FOLDED"
    BOOKLET_SELF_COVER = "BOOKLET_SELF_COVER"
    BOOKLET_PLUS_COVER = "BOOKLET_PLUS_COVER"

    ALL = (FLAT, FOLDED, BOOKLET_SELF_COVER, BOOKLET_PLUS_COVER)


class ComponentOwner:
    """Party responsible for producing a job component."""

    BROKER = "BROKER"
    VENDOR = "VENDOR"
    CUSTOMER = "CUSTOMER"

    ALL = (BROKER, VENDOR, CUSTOMER)


class JobSource:
    """Channel a job was created through."""

    MANUAL = "MANUAL"
    WEBHOOK = "WEBHOOK"
    IMPORT = "IMPORT"

    ALL = (MANUAL, WEBHOOK, IMPORT)


class CompanyIds:
    """
    Party identifiers stored on purchase orders.

    These are plain strings, not foreign keys: external vendors are referenced
    through ``target_vendor_id`` instead.
    """

    BROKER = "broker"
    PARTNER = "partner"
    MANUFACTURER = "manufacturer"


class ActivityAction:
    """Audit log actions."""

    JOB_UPDATED = "JOB_UPDATED"
    PO_CREATED = "PO_CREATED"
    PO_UPDATED = "PO_UPDATED"
    PO_DELETED = "PO_DELETED"
    PAYMENT_UPDATED = "PAYMENT_UPDATED"
    NOTICE_SENT = "NOTICE_SENT"
    NOTICE_FAILED = "NOTICE_FAILED"
    WEBHOOK_CREATE = "WEBHOOK_CREATE"
    WEBHOOK_UPDATE = "WEBHOOK_UPDATE"


def enum_pattern(values) -> str:
    """Build a pydantic ``pattern`` accepting exactly the given values."""
    return "^(" + "|".join(values) + ")$"
