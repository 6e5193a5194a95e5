from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fleet.core.dependencies import get_db, require_role
from fleet.models.company import Company
from fleet.models.customer import Customer
from fleet.models.driver import Driver
from fleet.models.vehicle import Vehicle
from fleet.schemas.company import CompanyCreate, CompanyResponse, CompanyUpdate
from fleet.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate
from fleet.schemas.driver import DriverCreate, DriverResponse, DriverUpdate
from fleet.schemas.driver_payment import DriverPaymentResponse
from fleet.schemas.vehicle import VehicleCreate, VehicleResponse, VehicleUpdate
from fleet.services import master_service
from fleet.services.audit_service import log_action
from fleet.services.driver_payment_service import list_driver_payments_for_driver


router = APIRouter(prefix="/api", tags=["Masters"])

EDIT_ROLES = ["admin", "dispatcher"]
READ_ROLES = ["admin", "dispatcher", "accountant"]


# ---------------- DRIVERS ----------------

@router.post("/drivers", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
def create_driver(
    driver: DriverCreate,
    db: Session = Depends(get_db),
    user=Depends(require_role(EDIT_ROLES)),
):
    new_driver = master_service.create_entity(db, Driver, driver, "Driver")

    log_action(
        db=db,
        user_id=user.id,
        action="CREATE_DRIVER",
        entity_type="Driver",
        entity_id=new_driver.id,
        details=f"Driver '{new_driver.name}' created",
    )

    return new_driver


@router.get("/drivers", response_model=List[DriverResponse])
def get_drivers(
    db: Session = Depends(get_db),
    user=Depends(require_role(READ_ROLES)),
):
    return master_service.list_entities(db, Driver, Driver.name.asc())


@router.get("/drivers/{driver_id}", response_model=DriverResponse)
def get_driver(
    driver_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(READ_ROLES)),
):
    return master_service.get_or_404(db, Driver, driver_id, "Driver")


@router.put("/drivers/{driver_id}", response_model=DriverResponse)
def update_driver(
    driver_id: int,
    updates: DriverUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_role(EDIT_ROLES)),
):
    driver = master_service.update_entity(db, Driver, driver_id, updates, "Driver")

    log_action(
        db=db,
        user_id=user.id,
        action="UPDATE_DRIVER",
        entity_type="Driver",
        entity_id=driver.id,
    )

    return driver


@router.delete("/drivers/{driver_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_driver(
    driver_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(EDIT_ROLES)),
):
    master_service.delete_entity(db, Driver, driver_id, "Driver")

    log_action(
        db=db,
        user_id=user.id,
        action="DELETE_DRIVER",
        entity_type="Driver",
        entity_id=driver_id,
    )


@router.get("/drivers/{driver_id}/payments", response_model=List[DriverPaymentResponse])
def get_driver_payments(
    driver_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin", "accountant", "dispatcher"])),
):
    return list_driver_payments_for_driver(db, driver_id)


# ---------------- CUSTOMERS ----------------

@router.post("/customers", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    customer: CustomerCreate,
    db: Session = Depends(get_db),
    user=Depends(require_role(EDIT_ROLES)),
):
    new_customer = master_service.create_entity(db, Customer, customer, "Customer")

    log_action(
        db=db,
        user_id=user.id,
        action="CREATE_CUSTOMER",
        entity_type="Customer",
        entity_id=new_customer.id,
        details=f"Customer '{new_customer.name}' created",
    )

    return new_customer


@router.get("/customers", response_model=List[CustomerResponse])
def get_customers(
    db: Session = Depends(get_db),
    user=Depends(require_role(READ_ROLES)),
):
    return master_service.list_entities(db, Customer, Customer.name.asc())


@router.get("/customers/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(READ_ROLES)),
):
    return master_service.get_or_404(db, Customer, customer_id, "Customer")


@router.put("/customers/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    updates: CustomerUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_role(EDIT_ROLES)),
):
    customer = master_service.update_entity(db, Customer, customer_id, updates, "Customer")

    log_action(
        db=db,
        user_id=user.id,
        action="UPDATE_CUSTOMER",
        entity_type="Customer",
        entity_id=customer.id,
    )

    return customer


@router.delete("/customers/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(EDIT_ROLES)),
):
    master_service.delete_entity(db, Customer, customer_id, "Customer")

    log_action(
        db=db,
        user_id=user.id,
        action="DELETE_CUSTOMER",
        entity_type="Customer",
        entity_id=customer_id,
    )


# ---------------- VEHICLES ----------------

@router.post("/vehicles", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
def create_vehicle(
    vehicle: VehicleCreate,
    db: Session = Depends(get_db),
    user=Depends(require_role(EDIT_ROLES)),
):
    new_vehicle = master_service.create_entity(db, Vehicle, vehicle, "Vehicle")

    log_action(
        db=db,
        user_id=user.id,
        action="CREATE_VEHICLE",
        entity_type="Vehicle",
        entity_id=new_vehicle.id,
        details=f"Vehicle '{new_vehicle.registration_number}' created",
    )

    return new_vehicle


@router.get("/vehicles", response_model=List[VehicleResponse])
def get_vehicles(
    db: Session = Depends(get_db),
    user=Depends(require_role(READ_ROLES)),
):
    return master_service.list_entities(db, Vehicle, Vehicle.registration_number.asc())


@router.get("/vehicles/{vehicle_id}", response_model=VehicleResponse)
def get_vehicle(
    vehicle_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(READ_ROLES)),
):
    return master_service.get_or_404(db, Vehicle, vehicle_id, "Vehicle")


@router.put("/vehicles/{vehicle_id}", response_model=VehicleResponse)
def update_vehicle(
    vehicle_id: int,
    updates: VehicleUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_role(EDIT_ROLES)),
):
    vehicle = master_service.update_entity(db, Vehicle, vehicle_id, updates, "Vehicle")

    log_action(
        db=db,
        user_id=user.id,
        action="UPDATE_VEHICLE",
        entity_type="Vehicle",
        entity_id=vehicle.id,
    )

    return vehicle


@router.delete("/vehicles/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_vehicle(
    vehicle_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(EDIT_ROLES)),
):
    master_service.delete_entity(db, Vehicle, vehicle_id, "Vehicle")

    log_action(
        db=db,
        user_id=user.id,
        action="DELETE_VEHICLE",
        entity_type="Vehicle",
        entity_id=vehicle_id,
    )


# ---------------- COMPANIES ----------------

@router.post("/companies", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
def create_company(
    company: CompanyCreate,
    db: Session = Depends(get_db),
    user=Depends(require_role(EDIT_ROLES)),
):
    new_company = master_service.create_entity(db, Company, company, "Company")

    log_action(
        db=db,
        user_id=user.id,
        action="CREATE_COMPANY",
        entity_type="Company",
        entity_id=new_company.id,
        details=f"Company '{new_company.name}' created",
    )

    return new_company


@router.get("/companies", response_model=List[CompanyResponse])
def get_companies(
    db: Session = Depends(get_db),
    user=Depends(require_role(READ_ROLES)),
):
    return master_service.list_entities(db, Company, Company.name.asc())


@router.get("/companies/{company_id}", response_model=CompanyResponse)
def get_company(
    company_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(READ_ROLES)),
):
    return master_service.get_or_404(db, Company, company_id, "Company")


@router.put("/companies/{company_id}", response_model=CompanyResponse)
def update_company(
    company_id: int,
    updates: CompanyUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_role(EDIT_ROLES)),
):
    company = master_service.update_entity(db, Company, company_id, updates, "Company")

    log_action(
        db=db,
        user_id=user.id,
        action="UPDATE_COMPANY",
        entity_type="Company",
        entity_id=company.id,
    )

    return company


@router.delete("/companies/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_company(
    company_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(EDIT_ROLES)),
):
    master_service.delete_entity(db, Company, company_id, "Company")

    log_action(
        db=db,
        user_id=user.id,
        action="DELETE_COMPANY",
        entity_type="Company",
        entity_id=company_id,
    )
