from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_booking_repo, get_config_repo, get_current_user_id, get_history_repo, get_session
from ..domain.errors import BookingNotFoundError
from ..domain.repositories import BookingRepository, CapacityConfigRepository, ModificationHistoryRepository
from ..schemas import (
    EligibilityRead,
    ModificationRecordRead,
    ModificationRecordWrite,
    ModificationValidate,
    PartySizeCheck,
    PartySizeRead,
)
from ..usecases import modifications as modification_usecase
from ..utils.audit_log import emit_audit_log

router = APIRouter(prefix="/restaurants/{restaurant_id}/modifications", tags=["modifications"])


@router.post("/validate", response_model=EligibilityRead, response_model_exclude_none=True)
async def validate_modifiable(
    restaurant_id: int,
    payload: ModificationValidate,
    booking_repo: BookingRepository = Depends(get_booking_repo),
    history_repo: ModificationHistoryRepository = Depends(get_history_repo),
) -> EligibilityRead:
    try:
        result = await modification_usecase.validate_booking_modifiable(
            booking_repo,
            history_repo,
            booking_id=payload.booking_id,
        )
    except BookingNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="booking not found")
    return EligibilityRead.from_domain(result)


@router.post("/party-size", response_model=PartySizeRead, response_model_exclude_none=True)
async def check_party_size(
    restaurant_id: int,
    payload: PartySizeCheck,
    booking_repo: BookingRepository = Depends(get_booking_repo),
    config_repo: CapacityConfigRepository = Depends(get_config_repo),
) -> PartySizeRead:
    decision = await modification_usecase.check_party_size_change(
        booking_repo,
        config_repo,
        day=payload.date,
        current_party_size=payload.current_party_size,
        new_party_size=payload.new_party_size,
        exclude_booking_id=payload.booking_id,
    )
    return PartySizeRead.from_domain(decision)


@router.post("/history", response_model=ModificationRecordRead, status_code=status.HTTP_201_CREATED)
async def record_modification(
    restaurant_id: int,
    payload: ModificationRecordWrite,
    session: AsyncSession = Depends(get_session),
    history_repo: ModificationHistoryRepository = Depends(get_history_repo),
    user_id: int = Depends(get_current_user_id),
) -> ModificationRecordRead:
    record_id = await modification_usecase.record_modification(
        history_repo,
        booking_id=payload.booking_id,
        field_modified=payload.field_modified,
        old_value=payload.old_value,
        new_value=payload.new_value,
        customer_phone=payload.customer_phone,
    )
    await session.commit()
    emit_audit_log(
        action="modification.recorded",
        initiator="staff",
        restaurant_id=restaurant_id,
        user_id=user_id,
        booking_id=payload.booking_id,
        old_value=payload.old_value,
        new_value=payload.new_value,
        extra={"field": payload.field_modified},
    )
    return ModificationRecordRead(id=record_id, booking_id=payload.booking_id)
