"""Customer endpoints. Writes require manage:customers."""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser, require_member, require_permission
from app.core.database import get_session
from app.models.customer import Customer
from app.models.project import Project
from taskhub_shared.permissions import MANAGE_CUSTOMERS
from taskhub_shared.schemas.customers import CustomerCreate, CustomerRead, CustomerUpdate

router = APIRouter()


async def _get_customer_or_404(
    session: AsyncSession, customer_id: uuid.UUID, org_id: uuid.UUID
) -> Customer:
    customer = await session.get(Customer, customer_id)
    if not customer or customer.organization_id != org_id:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


async def _project_counts(session: AsyncSession, org_id: uuid.UUID) -> dict[uuid.UUID, int]:
    result = await session.execute(
        select(Project.customer_id, func.count())
        .where(Project.organization_id == org_id, Project.customer_id.is_not(None))
        .group_by(Project.customer_id)
    )
    return dict(result.all())


@router.get("/", response_model=List[CustomerRead])
async def list_customers_endpoint(
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    result = await session.execute(
        select(Customer).where(Customer.organization_id == auth.org_id).order_by(Customer.name)
    )
    counts = await _project_counts(session, auth.org_id)
    customers = []
    for customer in result.scalars().all():
        read = CustomerRead.model_validate(customer)
        read.project_count = counts.get(customer.id, 0)
        customers.append(read)
    return customers


@router.post("/", response_model=CustomerRead, status_code=201)
async def create_customer_endpoint(
    body: CustomerCreate,
    auth: AuthenticatedUser = Depends(require_permission(MANAGE_CUSTOMERS)),
    session: AsyncSession = Depends(get_session),
):
    customer = Customer(organization_id=auth.org_id, **body.model_dump())
    session.add(customer)
    await session.commit()
    await session.refresh(customer)
    return customer


@router.patch("/{customer_id}", response_model=CustomerRead)
async def update_customer_endpoint(
    customer_id: uuid.UUID,
    body: CustomerUpdate,
    auth: AuthenticatedUser = Depends(require_permission(MANAGE_CUSTOMERS)),
    session: AsyncSession = Depends(get_session),
):
    customer = await _get_customer_or_404(session, customer_id, auth.org_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        if key == "name" and not value:
            continue
        setattr(customer, key, value)
    session.add(customer)
    await session.commit()
    await session.refresh(customer)
    read = CustomerRead.model_validate(customer)
    read.project_count = (await _project_counts(session, auth.org_id)).get(customer.id, 0)
    return read


@router.delete("/{customer_id}", status_code=204)
async def delete_customer_endpoint(
    customer_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_permission(MANAGE_CUSTOMERS)),
    session: AsyncSession = Depends(get_session),
):
    """Delete a customer. Its projects keep their client fields but lose the link."""
    customer = await _get_customer_or_404(session, customer_id, auth.org_id)
    await session.execute(
        update(Project).where(Project.customer_id == customer.id).values(customer_id=None)
    )
    await session.delete(customer)
    await session.commit()
