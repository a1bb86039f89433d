"""Fixture provisioning: a per-run bucket holding the uploaded audio fixtures."""

from __future__ import annotations

import contextlib
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional

from src.harness.config import HarnessConfig
from src.harness.storage import StorageBackend, StorageErrorKind, classify_storage_error

logger = logging.getLogger(__name__)


class ProvisioningError(RuntimeError):
    """Raised when the fixture bucket cannot be created, filled, or removed."""

    def __init__(
        self,
        message: str,
        *,
        kind: StorageErrorKind = "unknown",
        context: Optional["SuiteContext"] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.context = context


def make_bucket_name(prefix: str) -> str:
    """Return a globally unique bucket name so concurrent runs never collide."""
    return f"{prefix}{uuid.uuid4()}"


@dataclass
class SuiteContext:
    """State shared by setup, every scenario, and teardown of one suite run."""

    bucket_name: str
    fixtures: Dict[str, Path] = field(default_factory=dict)
    provisioned: bool = False

    def local_path(self, name: str) -> Path:
        if name not in self.fixtures:
            raise KeyError(f"Fixture '{name}' is not registered for this run")
        return self.fixtures[name]

    def gcs_uri(self, name: str) -> str:
        return f"gs://{self.bucket_name}/{name}"


class FixtureProvisioner:
    """Create the run's bucket before any scenario and delete it afterwards."""

    def __init__(self, config: HarnessConfig, storage: StorageBackend) -> None:
        self.config = config
        self.storage = storage

    def setup(self, fixture_names: Iterable[str], uploads: Optional[Iterable[str]] = None) -> SuiteContext:
        """Create a uniquely named bucket and upload fixtures into it.

        Args:
            fixture_names: Fixtures the scenarios will reference locally.
            uploads: Fixtures to upload; defaults to all of fixture_names.

        Returns:
            The SuiteContext for this run.

        Raises:
            ProvisioningError: If bucket creation or any upload fails. No retry.
        """
        names = list(dict.fromkeys(fixture_names))
        to_upload = names if uploads is None else list(dict.fromkeys(uploads))
        ctx = SuiteContext(
            bucket_name=make_bucket_name(self.config.bucket_prefix),
            fixtures={name: self.config.fixture_path(name) for name in dict.fromkeys([*names, *to_upload])},
        )

        try:
            self.storage.create_bucket(ctx.bucket_name)
        except Exception as exc:
            kind = classify_storage_error(exc)
            raise ProvisioningError(
                f"Failed to create bucket '{ctx.bucket_name}' ({kind}): {exc}", kind=kind
            ) from exc
        ctx.provisioned = True

        for name in to_upload:
            try:
                self.storage.upload(ctx.bucket_name, ctx.fixtures[name])
            except Exception as exc:
                kind = classify_storage_error(exc)
                raise ProvisioningError(
                    f"Failed to upload '{name}' to gs://{ctx.bucket_name} ({kind}): {exc}",
                    kind=kind,
                    context=ctx,
                ) from exc

        logger.info(f"Provisioned gs://{ctx.bucket_name} with {len(to_upload)} fixture(s)")
        return ctx

    def teardown(self, ctx: SuiteContext) -> None:
        """Delete every object (delete_attempts passes), then the bucket.

        Listing may lag behind recent uploads, so a single pass can miss
        objects. Later passes that find nothing are not errors. A failed
        pass does not stop the bucket deletion; it only surfaces if the
        bucket cannot be deleted. Calling teardown on an already torn-down
        context is a no-op.
        """
        if not ctx.provisioned:
            return

        attempts = self.config.delete_attempts
        pass_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                deleted = self.storage.delete_objects(ctx.bucket_name, force=True)
            except Exception as exc:
                logger.warning(f"Delete pass {attempt}/{attempts} on gs://{ctx.bucket_name} failed: {exc}")
                pass_error = exc
                continue
            logger.debug(f"Delete pass {attempt}/{attempts} removed {deleted} object(s)")

        try:
            self.storage.delete_bucket(ctx.bucket_name)
        except Exception as exc:
            kind = classify_storage_error(exc)
            message = f"Failed to delete bucket '{ctx.bucket_name}' ({kind}): {exc}"
            if pass_error is not None:
                message += f" (last delete pass error: {pass_error})"
                exc.__context__ = pass_error
            raise ProvisioningError(message, kind=kind, context=ctx) from exc
        ctx.provisioned = False
        logger.info(f"Deprovisioned gs://{ctx.bucket_name}")

    @contextlib.contextmanager
    def provisioned(
        self, fixture_names: Iterable[str], uploads: Optional[Iterable[str]] = None
    ) -> Iterator[SuiteContext]:
        """Set up, yield the context, and always tear down exactly once.

        When the body raises, a teardown failure is logged and the body's
        exception propagates.
        """
        try:
            ctx = self.setup(fixture_names, uploads)
        except ProvisioningError as exc:
            if exc.context is not None:
                self._teardown_quietly(exc.context)
            raise
        try:
            yield ctx
        except BaseException:
            self._teardown_quietly(ctx)
            raise
        self.teardown(ctx)

    def _teardown_quietly(self, ctx: SuiteContext) -> None:
        try:
            self.teardown(ctx)
        except ProvisioningError as exc:
            logger.warning(f"Cleanup of gs://{ctx.bucket_name} did not complete: {exc}")
