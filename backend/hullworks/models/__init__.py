"""HULLWORKS MES — SQLAlchemy models."""
from hullworks.models.audit import AuditLog
from hullworks.models.metrics import StationMetrics
from hullworks.models.organization import Department, Equipment, Station, StationEquipment, StationMember, WorkCenter
from hullworks.models.product import (
    ConfigurationComponent,
    ConfigurationOption,
    ConfigurationSection,
    DependencyType,
    OptionDependency,
    ProductModel,
    ProductTrim,
)
from hullworks.models.routing import RoutingStage, RoutingVersion, RoutingVersionStatus
from hullworks.models.user import PayRateHistory, User, UserRoleEnum
from hullworks.models.work_order import StageEvent, WOPriority, WOStageLog, WOStatus, WorkOrder, WorkOrderNote, WorkOrderVersion

__all__ = [
    "Department", "WorkCenter", "Station", "StationMember", "Equipment", "StationEquipment",
    "User", "UserRoleEnum", "PayRateHistory",
    "ProductModel", "ProductTrim", "ConfigurationSection", "ConfigurationComponent", "ConfigurationOption",
    "OptionDependency", "DependencyType",
    "RoutingVersion", "RoutingStage", "RoutingVersionStatus",
    "WorkOrder", "WorkOrderVersion", "WOStageLog", "WorkOrderNote", "WOStatus", "WOPriority", "StageEvent",
    "StationMetrics",
    "AuditLog",
]
