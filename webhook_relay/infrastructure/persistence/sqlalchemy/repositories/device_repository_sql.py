from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import func, update
from sqlmodel import Session, select

from .....db.models import DeviceToken
from .....utils import as_utc, utcnow
from .....application.ports.device_repo import DeviceRepository, DeviceDto

class SqlDeviceRepository(DeviceRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, device: DeviceToken) -> DeviceDto:
        return DeviceDto(
            id=device.id,
            token=device.token,
            phone_number=device.phone_number,
            user_id=device.user_id,
            vehicle_id=device.vehicle_id,
            registration_number=device.registration_number,
            chassis_number=device.chassis_number,
            platform=device.platform,
            device_info=device.device_info,
            active=device.active,
            last_used=as_utc(device.last_used),
            created_at=as_utc(device.created_at),
        )

    def upsert(self, token: str, fields: Dict[str, Any]) -> DeviceDto:
        now = utcnow()
        device = self.session.exec(select(DeviceToken).where(DeviceToken.token == token)).first()
        if device is None:
            device = DeviceToken(token=token, **fields)
        else:
            for key, value in fields.items():
                setattr(device, key, value)
        device.active = True
        device.last_used = now
        device.updated_at = now
        self.session.add(device)
        self.session.commit()
        self.session.refresh(device)
        return self._to_dto(device)

    def get_by_token(self, token: str) -> Optional[DeviceDto]:
        device = self.session.exec(select(DeviceToken).where(DeviceToken.token == token)).first()
        return self._to_dto(device) if device else None

    def deactivate(self, token: str) -> bool:
        return self.deactivate_many([token]) > 0

    def deactivate_many(self, tokens: Iterable[str]) -> int:
        tokens = list(tokens)
        if not tokens:
            return 0
        result = self.session.exec(
            update(DeviceToken)
            .where(DeviceToken.token.in_(tokens))
            .values(active=False, updated_at=utcnow())
        )
        self.session.commit()
        return result.rowcount or 0

    def list_active(self, vehicle_id: Optional[str] = None) -> List[DeviceDto]:
        query = select(DeviceToken).where(DeviceToken.active == True)  # noqa: E712
        if vehicle_id is not None:
            query = query.where(DeviceToken.vehicle_id == vehicle_id)
        return [self._to_dto(d) for d in self.session.exec(query.order_by(DeviceToken.id)).all()]

    def list(self, vehicle_id: Optional[str] = None, active: Optional[bool] = None, limit: int = 100) -> List[DeviceDto]:
        query = select(DeviceToken)
        if vehicle_id is not None:
            query = query.where(DeviceToken.vehicle_id == vehicle_id)
        if active is not None:
            query = query.where(DeviceToken.active == active)
        query = query.order_by(DeviceToken.last_used.desc()).limit(limit)
        return [self._to_dto(d) for d in self.session.exec(query).all()]

    def count_active(self) -> int:
        return self.session.exec(
            select(func.count()).select_from(DeviceToken).where(DeviceToken.active == True)  # noqa: E712
        ).one()
