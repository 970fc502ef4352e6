from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .common.datetime_utils import Clock, SystemClock
from .core.constants import DEFAULT_BASE_DEBT_UNIT, DEFAULT_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .database.unit_of_work import UnitOfWorkFactory, mysql_uow_factory
from .debts.service import DebtService
from .exeats.service import ExeatWorkflowService
from .exeats.workflow import WorkflowOptions
from .notifications.dispatcher import NotificationDispatcher, SafeNotifier
from .notifications.mysql_notification_dispatcher import MySQLNotificationDispatcher
from .overdue.calculator.day_boundary_calculator import DayBoundaryDebtCalculator
from .overdue.service import OverdueSweepService
from .staff.directory import StaffDirectory
from .staff.mysql_staff_directory import MySQLStaffDirectory
from .staff.policy import AuthorizationPolicy


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    policy: AuthorizationPolicy
    clock: Clock

    exeat_service: ExeatWorkflowService
    debt_service: DebtService
    sweep_service: OverdueSweepService


def build_services(
    *,
    uow_factory: UnitOfWorkFactory,
    directory: StaffDirectory,
    dispatcher: NotificationDispatcher,
    clock: Clock,
    base_debt_unit=DEFAULT_BASE_DEBT_UNIT,
    hostel_stages_enabled: bool = True,
    privileged_staff_ids: Iterable[int] = (),
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over any repository/dispatcher implementation."""
    policy = AuthorizationPolicy(directory, privileged_staff_ids=privileged_staff_ids)
    notifier = SafeNotifier(dispatcher)
    calculator = DayBoundaryDebtCalculator(base_debt_unit)

    exeat_service = ExeatWorkflowService(
        uow_factory,
        policy,
        notifier,
        clock,
        calculator,
        options=WorkflowOptions(hostel_stages_enabled=hostel_stages_enabled),
    )
    debt_service = DebtService(uow_factory, policy, notifier, clock)
    sweep_service = OverdueSweepService(uow_factory, calculator, notifier, clock)

    return Container(
        conn=conn,
        policy=policy,
        clock=clock,
        exeat_service=exeat_service,
        debt_service=debt_service,
        sweep_service=sweep_service,
    )


def build_container(
    *,
    db_config: dict,
    timezone: str = DEFAULT_TIMEZONE,
    base_debt_unit=DEFAULT_BASE_DEBT_UNIT,
    hostel_stages_enabled: bool = True,
    privileged_staff_ids: Iterable[int] = (),
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return build_services(
        uow_factory=mysql_uow_factory(conn),
        directory=MySQLStaffDirectory(conn),
        dispatcher=MySQLNotificationDispatcher(conn),
        clock=SystemClock(timezone),
        base_debt_unit=base_debt_unit,
        hostel_stages_enabled=hostel_stages_enabled,
        privileged_staff_ids=privileged_staff_ids,
        conn=conn,
    )


def container_from_settings(settings) -> Container:
    return build_container(
        db_config=dict(getattr(settings, "DB_CONFIG")),
        timezone=getattr(settings, "EXEAT_TIMEZONE", DEFAULT_TIMEZONE),
        base_debt_unit=getattr(settings, "EXEAT_BASE_DEBT_UNIT", DEFAULT_BASE_DEBT_UNIT),
        hostel_stages_enabled=bool(getattr(settings, "HOSTEL_STAGES_ENABLED", True)),
        privileged_staff_ids=getattr(settings, "PRIVILEGED_STAFF_IDS", ()),
    )
