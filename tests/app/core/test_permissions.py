"""Tests for RolePermissionChecker."""

from app.config import Settings
from app.core.permissions import Capability, Role, RolePermissionChecker


def build_checker(enabled: bool = True) -> RolePermissionChecker:
    return RolePermissionChecker(
        {
            "admin": frozenset({"1"}),
            "manager": frozenset({"2"}),
            "closer": frozenset({"3"}),
            "setter": frozenset({"4", "3"}),
        },
        export_allow_list=frozenset({"5"}),
        enabled=enabled,
    )


def test_setter_capabilities():
    checker = build_checker()
    assert checker.allows("4", Capability.RECORD_SET)
    assert checker.allows("4", Capability.VIEW_STATS)
    assert not checker.allows("4", Capability.RECORD_CLOSE_OR_INSTALL)
    assert not checker.allows("4", Capability.DELETE_EVENTS)


def test_closer_can_record_closes_but_not_delete():
    checker = build_checker()
    assert checker.allows("3", Capability.RECORD_CLOSE_OR_INSTALL)
    assert not checker.allows("3", Capability.EXPORT_LEDGER)
    assert not checker.allows("3", Capability.DELETE_EVENTS)
    assert checker.roles_for("3") == frozenset({Role.CLOSER, Role.SETTER})


def test_admin_and_manager_have_everything():
    checker = build_checker()
    for capability in Capability:
        assert checker.allows("1", capability)
        assert checker.allows("2", capability)


def test_export_allow_list_grants_only_export():
    checker = build_checker()
    assert checker.allows("5", Capability.EXPORT_LEDGER)
    assert not checker.allows("5", Capability.VIEW_STATS)


def test_unknown_user_is_denied():
    checker = build_checker()
    assert not checker.allows("unknown-user", Capability.RECORD_SET)


def test_disabled_checker_allows_everything():
    checker = build_checker(enabled=False)
    assert checker.allows("unknown-user", Capability.DELETE_EVENTS)


def test_from_settings_parses_comma_separated_ids():
    settings = Settings(
        manager_user_ids=" 10, 11 ,,",
        export_user_ids="12",
        permissions_enabled=True,
    )
    checker = RolePermissionChecker.from_settings(settings)
    assert checker.allows("11", Capability.DELETE_EVENTS)
    assert checker.allows("12", Capability.EXPORT_LEDGER)
    assert checker.roles_for("") == frozenset()
