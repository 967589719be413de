"""
POS Catalog Engine - Application Service
========================================
Product maintenance. Products are soft-deleted through is_active;
a hard delete is only possible while nothing references the product.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Optional

from core.commands.service import CommandContext, LedgerService
from core.errors import NotFoundError, ReferentialError
from core.ledger_store.records import ProductRecord
from engines.catalog.commands import (
    DeleteProductRequest,
    SaveProductRequest,
    SetProductActiveRequest,
)
from engines.catalog.events import (
    build_product_activation_payload,
    build_product_deleted_payload,
    build_product_saved_payload,
    resolve_catalog_event_type,
)
from engines.catalog.policies import (
    product_must_exist_policy,
    product_unreferenced_policy,
)


class CatalogService(LedgerService):
    """Catalog Engine application service."""

    engine = "catalog"

    # ── commands ──────────────────────────────────────────────

    def save_product(
        self,
        sku: str,
        name: str,
        price,
        category: str = "",
        is_active: bool = True,
        *,
        context: Optional[CommandContext] = None,
    ) -> ProductRecord:
        request = SaveProductRequest(
            sku=sku, name=name, price=price,
            category=category, is_active=is_active,
        )
        command = self._command(request, context)

        with self._store.atomic():
            existing = self._store.get_product_by_sku(request.sku)
            product = ProductRecord(
                id=existing.id if existing else str(uuid.uuid4()),
                sku=request.sku,
                name=request.name,
                price=request.price,
                category=request.category,
                is_active=request.is_active,
            )
            self._store.save_product(product)
            self._publish(
                command,
                resolve_catalog_event_type(command.command_type),
                build_product_saved_payload(command, product, existing is None),
            )

        self._logger.info(
            f"Product {'created' if existing is None else 'updated'}: "
            f"{product.sku} '{product.name}' @ {product.price}"
        )
        return product

    def set_product_active(
        self,
        product_id: str,
        active: bool,
        *,
        context: Optional[CommandContext] = None,
    ) -> ProductRecord:
        request = SetProductActiveRequest(product_id=product_id, active=active)
        command = self._command(request, context)

        with self._store.atomic():
            product = self._store.get_product(product_id)
            self._enforce(
                command, product_must_exist_policy(command, product), NotFoundError,
            )
            if product.is_active == active:
                return product
            product = replace(product, is_active=active)
            self._store.save_product(product)
            self._publish(
                command,
                resolve_catalog_event_type(command.command_type),
                build_product_activation_payload(command, product),
            )

        self._logger.info(
            f"Product {product.sku} {'activated' if active else 'deactivated'}"
        )
        return product

    def delete_product(
        self,
        product_id: str,
        *,
        context: Optional[CommandContext] = None,
    ) -> None:
        request = DeleteProductRequest(product_id=product_id)
        command = self._command(request, context)

        with self._store.atomic():
            product = self._store.get_product(product_id)
            self._enforce(
                command, product_must_exist_policy(command, product), NotFoundError,
            )
            self._enforce(
                command,
                product_unreferenced_policy(
                    command, product, self._store.product_is_referenced(product_id),
                ),
                ReferentialError,
            )
            self._store.delete_product(product_id)
            self._publish(
                command,
                resolve_catalog_event_type(command.command_type),
                build_product_deleted_payload(command, product),
            )

        self._logger.info(f"Product deleted: {product.sku}")

    # ── queries ───────────────────────────────────────────────

    def get_product(self, product_id: str) -> ProductRecord:
        product = self._store.get_product(product_id)
        if product is None:
            raise NotFoundError(
                f"Product '{product_id}' not found.", code="PRODUCT_NOT_FOUND",
            )
        return product

    def list_products(
        self, active_only: bool = False, search: str = ""
    ) -> list[ProductRecord]:
        """Products sorted by name; search matches name, sku or category."""
        needle = (search or "").strip().lower()
        result = []
        for product in self._store.list_products():
            if active_only and not product.is_active:
                continue
            if needle and not any(
                needle in field.lower()
                for field in (product.name, product.sku, product.category)
            ):
                continue
            result.append(product)
        return result
