from __future__ import annotations

import pytest

from core.domain.models import AuditPolicy, FailurePolicy
from core.domain.variants import get_variant, list_variants, normalize_branch
from core.errors import UnknownVariantError


def test_four_variants_registered():
    assert [v.name for v in list_variants()] == ["standard", "strict", "lenient", "local"]


def test_strict_fails_on_audit_and_tests():
    strict = get_variant("STRICT")

    assert strict.audit_policy is AuditPolicy.FAIL
    assert strict.test_policy is FailurePolicy.FAIL


def test_unknown_variant():
    with pytest.raises(UnknownVariantError, match="standard"):
        get_variant("nightly")


@pytest.mark.parametrize(
    ("variant", "branch", "expected"),
    [
        ("standard", "main", True),
        ("standard", "master", True),
        ("standard", "origin/main", True),
        ("standard", "refs/heads/main", True),
        ("standard", "develop", False),
        ("standard", None, False),
        ("strict", "main", True),
        ("lenient", "feature/x", True),
        ("lenient", None, True),
        ("local", "main", False),
    ],
)
def test_push_branch_rules(variant, branch, expected):
    assert get_variant(variant).allows_push(branch) is expected


def test_normalize_branch():
    assert normalize_branch(" refs/remotes/origin/release/1.2 ") == "release/1.2"
