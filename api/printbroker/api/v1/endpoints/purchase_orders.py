"""Purchase order endpoints, nested under a job."""

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from printbroker.api.deps import get_actor, get_db
from printbroker.api.errors import to_http_exception
from printbroker.schemas.purchase_order import PurchaseOrderCreate, PurchaseOrderResponse, PurchaseOrderUpdate
from printbroker.services.errors import BrokerServiceError
from printbroker.services.purchase_order_service import (
    create_purchase_order,
    delete_purchase_order,
    list_purchase_orders,
    update_purchase_order,
)
from printbroker.services.serializers import purchase_order_response

router = APIRouter()


@router.get("", response_model=List[PurchaseOrderResponse])
def list_job_purchase_orders(
    job_id: str,
    db: Session = Depends(get_db),
):
    """List purchase orders on a job."""
    try:
        return [purchase_order_response(po) for po in list_purchase_orders(db, job_id)]
    except BrokerServiceError as e:
        raise to_http_exception(e)


@router.post("", response_model=PurchaseOrderResponse, status_code=status.HTTP_201_CREATED)
def create_job_purchase_order(
    job_id: str,
    request: PurchaseOrderCreate,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    """
    Add a purchase order.

    The PO number is generated when omitted. Vendor count and the profit
    split are refreshed in the same transaction.
    """
    try:
        po = create_purchase_order(db, job_id, request, changed_by=actor)
    except BrokerServiceError as e:
        raise to_http_exception(e)
    return purchase_order_response(po)


@router.patch("/{po_id}", response_model=PurchaseOrderResponse)
def update_job_purchase_order(
    job_id: str,
    po_id: str,
    request: PurchaseOrderUpdate,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    """Update a purchase order's costs, status or vendor."""
    try:
        po = update_purchase_order(db, job_id, po_id, request, changed_by=actor)
    except BrokerServiceError as e:
        raise to_http_exception(e)
    return purchase_order_response(po)


@router.delete("/{po_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job_purchase_order(
    job_id: str,
    po_id: str,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    """Remove a purchase order from a job."""
    try:
        delete_purchase_order(db, job_id, po_id, changed_by=actor)
    except BrokerServiceError as e:
        raise to_http_exception(e)
