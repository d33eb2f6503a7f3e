import uuid
from sqlalchemy.orm import Session
from app.models.bus import Bus
from app.models.operator import Operator
from app.models.user import User
from app.schemas.operator import OperatorIn, BusIn
from app.services.audit_service import log_audit

def create_operator(db: Session, body: OperatorIn, actor: User) -> Operator:
    name = body.companyName.strip()
    if db.query(Operator).filter(Operator.company_name == name).first():
        raise ValueError("operator already exists")
    op = Operator(id=str(uuid.uuid4()), company_name=name, approved=body.approved)
    db.add(op)
    log_audit(db, actor, "operator.create", "operator", op.id, {"companyName": name, "approved": body.approved})
    db.commit()
    db.refresh(op)
    return op

def add_bus(db: Session, operator_id: str, body: BusIn, actor: User) -> Bus:
    if not db.get(Operator, operator_id):
        raise LookupError("Operator not found")
    plate = body.plateNumber.strip().upper()
    if db.query(Bus).filter(Bus.plate_number == plate).first():
        raise ValueError("plate number already registered")
    bus = Bus(
        id=str(uuid.uuid4()),
        operator_id=operator_id,
        plate_number=plate,
        model=body.model,
        capacity=body.capacity,
        amenities=",".join(a.strip() for a in body.amenities if a.strip()),
    )
    db.add(bus)
    log_audit(db, actor, "bus.create", "bus", bus.id, {"operatorId": operator_id, "plateNumber": plate})
    db.commit()
    db.refresh(bus)
    return bus
