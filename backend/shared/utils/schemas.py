"""
Pydantic schemas for the REST API.
Centralized so services can return output DTOs without importing routers.

Request bodies use `model_fields_set` where "absent" and "null" mean
different things (e.g. OrderUpdate.delivery_person_id).
"""

from datetime import date, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, EmailStr, Field, model_validator

from shared.config.constants import Limits


# =============================================================================
# Common Types
# =============================================================================

Role = Literal["SUPER_ADMIN", "ADMIN", "VENDOR", "DELIVERY"]
FieldRole = Literal["VENDOR", "DELIVERY"]
TemperatureName = Literal["HOT", "WARM", "COLD", "FROZEN"]
VisitResultName = Literal["ORDER_TAKEN", "NOT_HOME", "REFUSED"]
OrderStatusName = Literal["PENDING_REVIEW", "PENDING", "IN_DELIVERY", "DELIVERED", "CANCELLED"]
SubscriptionStatusName = Literal["TRIAL", "ACTIVE", "PAST_DUE", "CANCELLED", "SUSPENDED"]
BillingPeriodName = Literal["MONTHLY", "YEARLY"]

Latitude = Annotated[float, Field(ge=-90, le=90)]
Longitude = Annotated[float, Field(ge=-180, le=180)]


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str


class MessageResponse(BaseModel):
    ok: bool = True
    message: str | None = None


# =============================================================================
# Authentication Schemas
# =============================================================================


class LoginRequest(BaseModel):
    """Login request body (mobile and web)."""

    email: EmailStr
    password: str = Field(min_length=1)


class UserInfo(BaseModel):
    """Basic user information included in auth responses."""

    id: int
    name: str
    email: str
    role: str
    company_id: int | None = None
    company_name: str | None = None


class LoginResponse(BaseModel):
    """Login response with JWT token."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int  # seconds
    user: UserInfo


class MeResponse(BaseModel):
    user_id: int
    company_id: int | None
    role: str
    email: str | None = None


class RegisterRequest(BaseModel):
    """Self-service signup: company plus its first ADMIN."""

    company_name: str = Field(min_length=Limits.MIN_NAME_LENGTH, max_length=Limits.MAX_NAME_LENGTH)
    admin_name: str = Field(min_length=Limits.MIN_NAME_LENGTH, max_length=Limits.MAX_NAME_LENGTH)
    email: EmailStr
    password: str = Field(min_length=Limits.MIN_PASSWORD_LENGTH)
    phone: str | None = None


class RegisterResponse(BaseModel):
    company_id: int
    company_name: str
    user_id: int
    email: str
    trial_ends_at: datetime
    trial_days: int


# =============================================================================
# Customer Schemas
# =============================================================================


class CustomerBilling(BaseModel):
    """Electronic invoicing fields shared by create and update."""

    requires_invoice: bool | None = None
    billing_id: str | None = None
    billing_id_type: str | None = None
    billing_legal_org: str | None = None
    billing_tribute: str | None = None
    billing_municipality_id: str | None = None
    billing_email: EmailStr | Literal[""] | None = None


class CustomerCreate(CustomerBilling):
    name: str = Field(min_length=Limits.MIN_NAME_LENGTH, max_length=Limits.MAX_NAME_LENGTH)
    owner_name: str | None = None
    phone: str | None = None
    address: str | None = None
    lat: Latitude
    lng: Longitude
    photo_url: str | None = None
    notes: str | None = None
    assigned_vendor_id: int | None = None


class CustomerUpdate(CustomerBilling):
    name: str | None = Field(default=None, min_length=Limits.MIN_NAME_LENGTH, max_length=Limits.MAX_NAME_LENGTH)
    owner_name: str | None = None
    phone: str | None = None
    address: str | None = None
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)
    photo_url: str | None = None
    notes: str | None = None


class CustomerAssign(BaseModel):
    vendor_id: int | None = None


class CustomerBatchAssign(BaseModel):
    customer_ids: list[int] = Field(min_length=1)
    vendor_id: int


class BatchAssignResult(BaseModel):
    updated: int


class VendorRef(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class CustomerOutput(BaseModel):
    id: int
    company_id: int
    name: str
    owner_name: str | None = None
    phone: str | None = None
    address: str | None = None
    lat: float
    lng: float
    photo_url: str | None = None
    notes: str | None = None
    last_visit_at: datetime | None = None
    assigned_vendor_id: int | None = None
    assigned_vendor: VendorRef | None = None
    requires_invoice: bool = False
    billing_id: str | None = None
    billing_id_type: str | None = None
    billing_legal_org: str | None = None
    billing_tribute: str | None = None
    billing_municipality_id: str | None = None
    billing_email: str | None = None
    is_active: bool
    created_at: datetime
    cold_status: TemperatureName
    days_since_visit: int | None = None


class VisitSummary(BaseModel):
    id: int
    vendor_id: int
    vendor_name: str | None = None
    visited_at: datetime
    check_out_at: datetime | None = None
    result: str | None = None
    reason: str | None = None
    order_amount: int | None = None
    notes: str | None = None


class CustomerDetail(CustomerOutput):
    visits: list[VisitSummary] = []


class NearbyCustomer(BaseModel):
    id: int
    name: str
    address: str | None = None
    phone: str | None = None
    lat: float
    lng: float
    assigned_vendor_id: int | None = None
    vendor_name: str | None = None
    last_visit_at: datetime | None = None
    distance_km: float
    cold_status: TemperatureName


# =============================================================================
# Visit Schemas
# =============================================================================


class CheckinRequest(BaseModel):
    customer_id: int
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)


class CheckoutRequest(BaseModel):
    result: VisitResultName
    reason: str | None = None
    order_amount: int | None = Field(default=None, gt=0)
    notes: str | None = None
    delivery_date: datetime | None = None
    scheduled_for: datetime | None = None  # next visit to schedule


class LegacyVisitCreate(BaseModel):
    """One-step visit: check-in and checkout at once."""

    customer_id: int
    result: VisitResultName
    reason: str | None = None
    order_amount: int | None = Field(default=None, gt=0)
    notes: str | None = None
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)


class VisitOutput(BaseModel):
    id: int
    customer_id: int
    vendor_id: int
    visited_at: datetime
    check_in_at: datetime | None = None
    check_out_at: datetime | None = None
    result: str | None = None
    reason: str | None = None
    order_amount: int | None = None
    notes: str | None = None
    lat: float | None = None
    lng: float | None = None

    class Config:
        from_attributes = True


class CheckoutResponse(BaseModel):
    visit: VisitOutput
    order_id: int | None = None
    scheduled_visit_id: int | None = None


class ScheduledVisitCreate(BaseModel):
    customer_id: int
    scheduled_for: datetime
    notes: str | None = None


class ScheduledVisitOutput(BaseModel):
    id: int
    customer_id: int
    customer_name: str | None = None
    customer_address: str | None = None
    vendor_id: int
    scheduled_for: datetime
    notes: str | None = None
    completed: bool
    visit_id: int | None = None


# =============================================================================
# Order and Delivery Schemas
# =============================================================================


class DeliveryOutput(BaseModel):
    id: int
    order_id: int
    delivery_person_id: int
    delivery_person_name: str | None = None
    status: str
    delivered_at: datetime | None = None
    notes: str | None = None
    created_at: datetime


class OrderOutput(BaseModel):
    id: int
    company_id: int
    customer_id: int
    customer_name: str | None = None
    customer_address: str | None = None
    customer_phone: str | None = None
    customer_lat: float | None = None
    customer_lng: float | None = None
    visit_id: int | None = None
    vendor_name: str | None = None
    amount: int
    status: OrderStatusName
    delivery_date: datetime | None = None
    notes: str | None = None
    invoice_number: str | None = None
    created_at: datetime
    delivery: DeliveryOutput | None = None


class OrderUpdate(BaseModel):
    """
    Admin edit of an order.

    delivery_person_id: present with an id assigns, present with null unassigns,
    absent leaves the assignment alone.
    """

    action: Literal["approve", "cancel"] | None = None
    delivery_date: datetime | None = None
    delivery_person_id: int | None = None


class DeliveryCreate(BaseModel):
    """Single (order_id) or batch (order_ids) assignment."""

    delivery_person_id: int
    order_id: int | None = None
    order_ids: list[int] | None = None
    delivery_date: datetime | None = None

    @model_validator(mode="after")
    def check_mode(self) -> "DeliveryCreate":
        if self.order_id is None and not self.order_ids:
            raise ValueError("Debe indicar order_id u order_ids")
        return self


class DeliveryBatchResult(BaseModel):
    assigned: int
    order_ids: list[int]


class DeliveryFinish(BaseModel):
    notes: str | None = None


# =============================================================================
# User Schemas
# =============================================================================


class UserCreate(BaseModel):
    name: str = Field(min_length=Limits.MIN_NAME_LENGTH, max_length=Limits.MAX_NAME_LENGTH)
    email: EmailStr
    password: str = Field(min_length=Limits.MIN_PASSWORD_LENGTH)
    role: FieldRole


class UserUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=Limits.MIN_NAME_LENGTH, max_length=Limits.MAX_NAME_LENGTH)
    role: FieldRole | None = None
    is_active: bool | None = None


class UserOutput(BaseModel):
    id: int
    company_id: int | None = None
    name: str
    email: str
    role: str
    is_active: bool
    created_at: datetime
    last_lat: float | None = None
    last_lng: float | None = None
    last_seen_at: datetime | None = None
    has_push_token: bool = False


class LocationUpdate(BaseModel):
    lat: Latitude
    lng: Longitude


class PushTokenUpdate(BaseModel):
    token: str = Field(min_length=1)


class RemindVisitRequest(BaseModel):
    customer_id: int | None = None
    message: str | None = None


# =============================================================================
# Company, Plan and Subscription Schemas
# =============================================================================


class PlanOutput(BaseModel):
    id: int
    name: str
    display_name: str
    description: str | None = None
    price: int
    max_vendors: int
    max_customers: int
    max_delivery: int
    dian_enabled: bool
    reports_enabled: bool
    api_access: bool
    history_days: int
    duration_days: int | None = None
    active: bool

    class Config:
        from_attributes = True


class PlanCreate(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    display_name: str = Field(min_length=2, max_length=100)
    description: str | None = None
    price: int = Field(ge=0)
    max_vendors: int = Field(default=-1, ge=-1)
    max_customers: int = Field(default=-1, ge=-1)
    max_delivery: int = Field(default=-1, ge=-1)
    dian_enabled: bool = False
    reports_enabled: bool = False
    api_access: bool = False
    history_days: int = Field(default=0, ge=0)
    duration_days: int | None = Field(default=None, gt=0)
    active: bool = True


class PlanUpdate(BaseModel):
    display_name: str | None = None
    description: str | None = None
    price: int | None = Field(default=None, ge=0)
    max_vendors: int | None = Field(default=None, ge=-1)
    max_customers: int | None = Field(default=None, ge=-1)
    max_delivery: int | None = Field(default=None, ge=-1)
    dian_enabled: bool | None = None
    reports_enabled: bool | None = None
    api_access: bool | None = None
    history_days: int | None = Field(default=None, ge=0)
    duration_days: int | None = Field(default=None, gt=0)
    active: bool | None = None


class SubscriptionOutput(BaseModel):
    id: int
    company_id: int
    status: str
    billing_period: str
    trial_ends_at: datetime | None = None
    current_period_start: datetime
    current_period_end: datetime
    notes: str | None = None
    read_only: bool
    plan: PlanOutput


class SubscriptionUpsert(BaseModel):
    plan_id: int | None = None
    status: SubscriptionStatusName | None = None
    billing_period: BillingPeriodName | None = None
    current_period_end: datetime | None = None
    trial_ends_at: datetime | None = None
    notes: str | None = None


class CompanyOutput(BaseModel):
    id: int
    name: str
    phone: str | None = None
    nit: str | None = None
    legal_name: str | None = None
    trade_name: str | None = None
    address: str | None = None
    city: str | None = None
    department: str | None = None
    postal_code: str | None = None
    email: str | None = None
    tax_regime: str | None = None
    economic_activity: str | None = None
    weekly_visit_goal: int
    is_active: bool
    created_at: datetime
    subscription: SubscriptionOutput | None = None


class CompanyUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=Limits.MIN_NAME_LENGTH, max_length=Limits.MAX_NAME_LENGTH)
    phone: str | None = None
    nit: str | None = None
    legal_name: str | None = None
    trade_name: str | None = None
    address: str | None = None
    city: str | None = None
    department: str | None = None
    postal_code: str | None = None
    email: EmailStr | None = None
    tax_regime: str | None = None
    economic_activity: str | None = None
    weekly_visit_goal: int | None = Field(default=None, ge=0)


class CompanyAdminUpdate(CompanyUpdate):
    """Superadmin can also (de)activate a company."""

    is_active: bool | None = None


class CompanySummary(BaseModel):
    id: int
    name: str
    is_active: bool
    created_at: datetime
    user_count: int
    customer_count: int
    plan_name: str | None = None
    subscription_status: str | None = None
    current_period_end: datetime | None = None
    read_only: bool


# =============================================================================
# Dashboard and Stats Schemas
# =============================================================================


class TemperatureCounts(BaseModel):
    HOT: int = 0
    WARM: int = 0
    COLD: int = 0
    FROZEN: int = 0


class DashboardOutput(BaseModel):
    total_customers: int
    by_temperature: TemperatureCounts
    pending_orders: int
    visits_today: int
    month_revenue: int


class VendorPerformance(BaseModel):
    vendor_id: int
    name: str
    assigned_customers: int
    visits: int
    orders: int
    amount: int
    conversion: float  # % of visits that produced an order


class DailyVisits(BaseModel):
    date: date
    visits: int


class VendorStatsOutput(BaseModel):
    days: int
    vendors: list[VendorPerformance]
    daily_visits: list[DailyVisits]
    weekly_goal: int


class DeliveryPerformance(BaseModel):
    delivery_person_id: int
    name: str
    total: int
    delivered: int
    failed: int
    in_progress: int
    success_rate: int
    avg_delivery_minutes: int | None = None


class DeliveryStatsOutput(BaseModel):
    date: date
    delivery_persons: list[DeliveryPerformance]


class VendorAppStats(BaseModel):
    assigned_customers: int
    visited_today: int
    pending_alerts: int
    scheduled_today: int


class CustomerAlert(BaseModel):
    id: int
    name: str
    address: str | None = None
    lat: float
    lng: float
    last_visit_at: datetime | None = None
    days_since_visit: int | None = None


class MyVisitsOutput(BaseModel):
    today: list[VisitOutput]
    scheduled: list[ScheduledVisitOutput]
    alerts: list[CustomerAlert]
