from __future__ import annotations

import pytest

from artifacts.models.artifacts.call_sites import ExceptionGuarantee
from frontend.model import ExceptionSpec
from parse.exception_spec import classify


@pytest.mark.parametrize(
    "spec",
    [
        ExceptionSpec.DYNAMIC_NONE,
        ExceptionSpec.BASIC_NOEXCEPT,
        ExceptionSpec.NOEXCEPT_TRUE,
        ExceptionSpec.NO_THROW,
    ],
)
def test_non_throwing_specs_are_noexcept(spec: ExceptionSpec) -> None:
    assert classify(spec) is ExceptionGuarantee.NO_THROW


@pytest.mark.parametrize(
    "spec",
    [
        ExceptionSpec.NONE,
        ExceptionSpec.DYNAMIC,
        ExceptionSpec.MS_ANY,
        ExceptionSpec.NOEXCEPT_FALSE,
        ExceptionSpec.DEPENDENT_NOEXCEPT,
        ExceptionSpec.UNEVALUATED,
        ExceptionSpec.UNINSTANTIATED,
        ExceptionSpec.UNPARSED,
        ExceptionSpec.UNKNOWN,
    ],
)
def test_every_other_spec_may_throw(spec: ExceptionSpec) -> None:
    assert classify(spec) is ExceptionGuarantee.MAY_THROW


def test_classification_is_two_valued() -> None:
    outcomes = {classify(spec) for spec in ExceptionSpec}

    assert outcomes == {ExceptionGuarantee.NO_THROW, ExceptionGuarantee.MAY_THROW}
