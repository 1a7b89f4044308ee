"""Tests for category, target and file ordering."""

from __future__ import annotations

import pytest

from makehelp.errors import UnknownCategoryError
from makehelp.models import Category, FileDoc, HelpModel, TargetRecord
from makehelp.ordering import OrderingService


def _model() -> HelpModel:
    build = Category(
        name="build",
        discovery_order=1,
        targets=[
            TargetRecord(name="compile", discovery_order=3),
            TargetRecord(name="Assemble", discovery_order=4),
        ],
    )
    test = Category(
        name="Test",
        discovery_order=0,
        targets=[
            TargetRecord(name="unit", discovery_order=0),
            TargetRecord(name="e2e", discovery_order=1),
            TargetRecord(name="Bench", discovery_order=2),
        ],
    )
    return HelpModel(
        categories=[test, build],
        has_categories=True,
        file_docs=[
            FileDoc("/p/make/zeta.mk", ["z"], discovery_order=1),
            FileDoc("/p/make/alpha.mk", ["a"], discovery_order=2),
            FileDoc("/p/Makefile", ["root"], is_entry_point=True, discovery_order=0),
        ],
    )


def test_default_ordering_is_alphabetical_case_insensitive() -> None:
    model = OrderingService().apply(_model())

    assert model.category_names() == ["build", "Test"]
    assert [t.name for t in model.categories[0].targets] == ["Assemble", "compile"]
    assert [t.name for t in model.categories[1].targets] == ["Bench", "e2e", "unit"]


def test_keep_order_uses_discovery_order() -> None:
    service = OrderingService(keep_order_categories=True, keep_order_targets=True)

    model = service.apply(_model())

    assert model.category_names() == ["Test", "build"]
    assert [t.name for t in model.categories[0].targets] == ["unit", "e2e", "Bench"]


def test_explicit_category_order_wins_over_keep_order() -> None:
    service = OrderingService(keep_order_categories=True, category_order=["build"])

    model = service.apply(_model())

    assert model.category_names() == ["build", "Test"]


def test_explicit_order_appends_remaining_categories_alphabetically() -> None:
    model = _model()
    model.categories.append(Category(name="Deploy", discovery_order=2))

    OrderingService(category_order=["Test"]).apply(model)

    assert model.category_names() == ["Test", "build", "Deploy"]


def test_unknown_category_in_explicit_order_fails() -> None:
    model = _model()
    model.categories[1].name = "Build"

    with pytest.raises(UnknownCategoryError) as excinfo:
        OrderingService(category_order=["Deploy"]).apply(model)

    assert excinfo.value.name == "Deploy"
    assert excinfo.value.available == ["Build", "Test"]
    assert "Available categories: Build, Test" in str(excinfo.value)


def test_file_docs_put_entry_point_first() -> None:
    model = OrderingService().apply(_model())
    assert [d.source_file for d in model.file_docs] == [
        "/p/Makefile",
        "/p/make/alpha.mk",
        "/p/make/zeta.mk",
    ]

    model = OrderingService(keep_order_files=True).apply(_model())
    assert [d.source_file for d in model.file_docs] == [
        "/p/Makefile",
        "/p/make/zeta.mk",
        "/p/make/alpha.mk",
    ]


def test_ordering_is_deterministic() -> None:
    first = OrderingService().apply(_model())
    second = OrderingService().apply(_model())

    assert first == second
