"""
Orthanc API Client — Orthanc REST Client.

Provides a typed client for the Orthanc DICOM server's REST API. Each
public method maps to one REST call: it builds the path and body, sends
a single request, classifies the status and decodes the body into the
matching model from :mod:`orthanc_api.dicom.models`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from orthanc_api.dicom.errors import DecodeError, OrthancError, check_http_error
from orthanc_api.dicom.fields import EntityKind
from orthanc_api.dicom.models import (
    ENTITY_MODELS,
    Anonymization,
    Instance,
    Modality,
    Modification,
    ModificationResult,
    Patient,
    Peer,
    PeerStoreResult,
    RemainingAncestor,
    Search,
    Series,
    Statistics,
    StoreResult,
    Study,
    System,
    UploadResult,
)
from orthanc_api.dicom.transport import Transport

if TYPE_CHECKING:
    from orthanc_api.config.settings import OrthancSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ID_LIST = TypeAdapter(list[str])
_JSON_OBJECT = TypeAdapter(dict[str, Any])
_SYSTEM = TypeAdapter(System)
_STATISTICS = TypeAdapter(Statistics)
_REMAINING_ANCESTOR = TypeAdapter(RemainingAncestor)
_MODIFICATION_RESULT = TypeAdapter(ModificationResult)
_UPLOAD_RESULT = TypeAdapter(UploadResult)
_STORE_RESULT = TypeAdapter(StoreResult)
_PEER_STORE_RESULT = TypeAdapter(PeerStoreResult)
_MODALITY_MAP = TypeAdapter(dict[str, Modality])
_PEER_MAP = TypeAdapter(dict[str, Peer])


def _decode(adapter: TypeAdapter[T], body: bytes) -> T:
    try:
        return adapter.validate_json(body)
    except ValidationError as exc:
        raise DecodeError.from_validation(exc) from exc


def _only_given(**fields: Any) -> dict[str, Any]:
    return {name: value for name, value in fields.items() if value is not None}


class OrthancClient:
    """Synchronous client for the Orthanc REST API.

    The configuration is fixed at construction, so one client can be
    shared by several threads as long as httpx allows it. No call is
    retried: every failure reaches the caller as an
    :class:`~orthanc_api.dicom.errors.OrthancError`.

    Args:
        base_url: Orthanc REST API root (e.g. ``http://localhost:8042``).
        username: Basic-auth username.
        password: Basic-auth password; auth is only used when both are set.
        timeout: Transport timeout in seconds (``None`` blocks until done).
        transport: Optional httpx transport, mainly for tests.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8042",
        username: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._transport = Transport(
            base_url,
            username=username,
            password=password,
            timeout=timeout,
            transport=transport,
        )
        self._username = username

    @classmethod
    def from_settings(
        cls,
        settings: OrthancSettings,
        transport: httpx.BaseTransport | None = None,
    ) -> OrthancClient:
        """Build a client from an :class:`OrthancSettings` value."""
        return cls(
            base_url=settings.base_url,
            username=settings.username,
            password=settings.password,
            timeout=settings.timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    @property
    def username(self) -> str | None:
        return self._username

    # Lifecycle

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._transport.close()

    def __enter__(self) -> OrthancClient:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    # Raw calls

    def _call(self, method: str, path: str, **kwargs: Any) -> bytes:
        response = self._transport.request(method, path, **kwargs)
        return check_http_error(response.status_code, response.content, response.reason_phrase)

    def _get(self, path: str) -> bytes:
        return self._call("GET", path)

    def _get_text(self, path: str) -> str:
        return Transport.decode_text(self._get(path))

    def _post(self, path: str, data: Any) -> bytes:
        return self._call("POST", path, json=data)

    def _post_bytes(self, path: str, data: bytes) -> bytes:
        return self._call("POST", path, content=data, headers={"Content-Type": "application/dicom"})

    def _put(self, path: str, data: Any) -> bytes:
        return self._call("PUT", path, json=data)

    def _delete(self, path: str) -> bytes:
        return self._call("DELETE", path)

    # Server introspection

    def get_system(self) -> System:
        """Return the server identity and version (``GET /system``)."""
        return _decode(_SYSTEM, self._get("/system"))

    def is_alive(self) -> bool:
        """Check whether the Orthanc server is reachable and answering."""
        try:
            self.get_system()
            return True
        except OrthancError:
            logger.debug("Orthanc at %s is not alive", self.base_url, exc_info=True)
            return False

    def get_statistics(self) -> Statistics:
        """Return storage statistics (patient/study/series/instance counts)."""
        return _decode(_STATISTICS, self._get("/statistics"))

    # Entities: generic

    def list_entities(self, kind: EntityKind) -> list[str]:
        """Return the IDs of every entity of *kind*, in server order."""
        return _decode(_ID_LIST, self._get(f"/{kind.collection}"))

    def list_entities_expanded(self, kind: EntityKind) -> list[Any]:
        """Return every entity of *kind* as its model."""
        adapter = TypeAdapter(list[ENTITY_MODELS[kind]])  # type: ignore[index]
        return _decode(adapter, self._get(f"/{kind.collection}?expand"))

    def get_entity(self, kind: EntityKind, entity_id: str) -> Any:
        """Return one entity of *kind*.

        Raises:
            ApiResponseError: With ``status_code == 404`` if it does not exist.
        """
        adapter = TypeAdapter(ENTITY_MODELS[kind])
        return _decode(adapter, self._get(f"/{kind.collection}/{entity_id}"))

    def delete_entity(self, kind: EntityKind, entity_id: str) -> RemainingAncestor:
        """Delete an entity and, server-side, all of its descendants."""
        logger.info("Deleting %s %s", kind.value, entity_id)
        body = self._delete(f"/{kind.collection}/{entity_id}")
        return _decode(_REMAINING_ANCESTOR, body)

    # Patients

    def list_patients(self) -> list[str]:
        """Return the list of Orthanc patient IDs."""
        return self.list_entities(EntityKind.PATIENT)

    def list_patients_expanded(self) -> list[Patient]:
        return self.list_entities_expanded(EntityKind.PATIENT)

    def get_patient(self, patient_id: str) -> Patient:
        return self.get_entity(EntityKind.PATIENT, patient_id)

    def delete_patient(self, patient_id: str) -> RemainingAncestor:
        return self.delete_entity(EntityKind.PATIENT, patient_id)

    def get_patient_dicom(self, patient_id: str) -> bytes:
        """Return a ZIP archive with every instance of the patient."""
        return self._get(f"/patients/{patient_id}/archive")

    # Studies

    def list_studies(self) -> list[str]:
        """Return the list of Orthanc study IDs."""
        return self.list_entities(EntityKind.STUDY)

    def list_studies_expanded(self) -> list[Study]:
        return self.list_entities_expanded(EntityKind.STUDY)

    def get_study(self, study_id: str) -> Study:
        return self.get_entity(EntityKind.STUDY, study_id)

    def delete_study(self, study_id: str) -> RemainingAncestor:
        return self.delete_entity(EntityKind.STUDY, study_id)

    def get_study_dicom(self, study_id: str) -> bytes:
        """Return a ZIP archive with every instance of the study."""
        return self._get(f"/studies/{study_id}/archive")

    # Series

    def list_series(self) -> list[str]:
        """Return the list of Orthanc series IDs."""
        return self.list_entities(EntityKind.SERIES)

    def list_series_expanded(self) -> list[Series]:
        return self.list_entities_expanded(EntityKind.SERIES)

    def get_series(self, series_id: str) -> Series:
        return self.get_entity(EntityKind.SERIES, series_id)

    def delete_series(self, series_id: str) -> RemainingAncestor:
        return self.delete_entity(EntityKind.SERIES, series_id)

    def get_series_dicom(self, series_id: str) -> bytes:
        """Return a ZIP archive with every instance of the series."""
        return self._get(f"/series/{series_id}/archive")

    # Instances

    def list_instances(self) -> list[str]:
        """Return the list of Orthanc instance IDs."""
        return self.list_entities(EntityKind.INSTANCE)

    def list_instances_expanded(self) -> list[Instance]:
        return self.list_entities_expanded(EntityKind.INSTANCE)

    def get_instance(self, instance_id: str) -> Instance:
        return self.get_entity(EntityKind.INSTANCE, instance_id)

    def delete_instance(self, instance_id: str) -> RemainingAncestor:
        return self.delete_entity(EntityKind.INSTANCE, instance_id)

    def get_instance_dicom(self, instance_id: str) -> bytes:
        """Return the raw DICOM file of an instance."""
        return self._get(f"/instances/{instance_id}/file")

    def get_instance_tags(self, instance_id: str) -> dict[str, Any]:
        """Return the simplified DICOM tags (name → value) of an instance.

        Args:
            instance_id: Orthanc instance identifier.
        """
        return _decode(_JSON_OBJECT, self._get(f"/instances/{instance_id}/simplified-tags"))

    def get_instance_tags_expanded(self, instance_id: str) -> dict[str, Any]:
        """Return the full tag document (``gggg,eeee`` → name/type/value)."""
        return _decode(_JSON_OBJECT, self._get(f"/instances/{instance_id}/tags"))

    def get_instance_tag_value(self, instance_id: str, tag: str) -> str:
        """Return the raw text value of a single tag.

        Args:
            instance_id: Orthanc instance identifier.
            tag: Tag as ``gggg-eeee`` (e.g. ``0010-0010``) or its keyword.
        """
        return self._get_text(f"/instances/{instance_id}/content/{tag}")

    # Modification & anonymization

    def modify(self, kind: EntityKind, entity_id: str, modification: Modification) -> ModificationResult:
        """Create a modified copy of a patient, study or series.

        Raises:
            ValueError: For instances; use :meth:`modify_instance`.
        """
        if kind is EntityKind.INSTANCE:
            raise ValueError("instances are modified with modify_instance()")
        payload = modification.to_payload()
        logger.info("Modifying %s %s (%s)", kind.value, entity_id, ", ".join(payload) or "no changes")
        body = self._post(f"/{kind.collection}/{entity_id}/modify", payload)
        return _decode(_MODIFICATION_RESULT, body)

    def modify_patient(
        self,
        patient_id: str,
        replace: dict[str, str] | None = None,
        remove: list[str] | None = None,
        force: bool | None = True,
    ) -> ModificationResult:
        """Modify a patient.

        ``force`` defaults to ``True``: Orthanc rejects patient-level
        changes to ``PatientID`` without it.
        """
        modification = Modification(**_only_given(replace=replace, remove=remove, force=force))
        return self.modify(EntityKind.PATIENT, patient_id, modification)

    def modify_study(
        self,
        study_id: str,
        replace: dict[str, str] | None = None,
        remove: list[str] | None = None,
        force: bool | None = None,
    ) -> ModificationResult:
        modification = Modification(**_only_given(replace=replace, remove=remove, force=force))
        return self.modify(EntityKind.STUDY, study_id, modification)

    def modify_series(
        self,
        series_id: str,
        replace: dict[str, str] | None = None,
        remove: list[str] | None = None,
        force: bool | None = None,
    ) -> ModificationResult:
        modification = Modification(**_only_given(replace=replace, remove=remove, force=force))
        return self.modify(EntityKind.SERIES, series_id, modification)

    def modify_instance(self, instance_id: str, modification: Modification) -> bytes:
        """Return a modified copy of an instance as a DICOM file; nothing is stored."""
        return self._post(f"/instances/{instance_id}/modify", modification.to_payload())

    def anonymize(self, kind: EntityKind, entity_id: str, anonymization: Anonymization) -> ModificationResult:
        """Create an anonymized copy of a patient, study or series.

        Raises:
            ValueError: For instances; use :meth:`anonymize_instance`.
        """
        if kind is EntityKind.INSTANCE:
            raise ValueError("instances are anonymized with anonymize_instance()")
        logger.info("Anonymizing %s %s", kind.value, entity_id)
        body = self._post(f"/{kind.collection}/{entity_id}/anonymize", anonymization.to_payload())
        return _decode(_MODIFICATION_RESULT, body)

    @staticmethod
    def _anonymization(**fields: Any) -> Anonymization:
        return Anonymization(**_only_given(**fields))

    def anonymize_patient(
        self,
        patient_id: str,
        replace: dict[str, str] | None = None,
        keep: list[str] | None = None,
        keep_private_tags: bool | None = None,
        dicom_version: str | None = None,
        force: bool | None = None,
    ) -> ModificationResult:
        anonymization = self._anonymization(
            replace=replace,
            keep=keep,
            keep_private_tags=keep_private_tags,
            dicom_version=dicom_version,
            force=force,
        )
        return self.anonymize(EntityKind.PATIENT, patient_id, anonymization)

    def anonymize_study(
        self,
        study_id: str,
        replace: dict[str, str] | None = None,
        keep: list[str] | None = None,
        keep_private_tags: bool | None = None,
        dicom_version: str | None = None,
        force: bool | None = None,
    ) -> ModificationResult:
        anonymization = self._anonymization(
            replace=replace,
            keep=keep,
            keep_private_tags=keep_private_tags,
            dicom_version=dicom_version,
            force=force,
        )
        return self.anonymize(EntityKind.STUDY, study_id, anonymization)

    def anonymize_series(
        self,
        series_id: str,
        replace: dict[str, str] | None = None,
        keep: list[str] | None = None,
        keep_private_tags: bool | None = None,
        dicom_version: str | None = None,
        force: bool | None = None,
    ) -> ModificationResult:
        anonymization = self._anonymization(
            replace=replace,
            keep=keep,
            keep_private_tags=keep_private_tags,
            dicom_version=dicom_version,
            force=force,
        )
        return self.anonymize(EntityKind.SERIES, series_id, anonymization)

    def anonymize_instance(self, instance_id: str, anonymization: Anonymization) -> bytes:
        """Return an anonymized copy of an instance as a DICOM file; nothing is stored."""
        return self._post(f"/instances/{instance_id}/anonymize", anonymization.to_payload())

    # Search

    def search(self, search: Search) -> list[Any]:
        """Run ``/tools/find``.

        Returns:
            Matching IDs, or the matching entities as models when
            ``search.expand`` is set.
        """
        body = self._post("/tools/find", search.to_payload())
        if search.expand:
            return _decode(TypeAdapter(list[ENTITY_MODELS[search.level]]), body)  # type: ignore[index]
        return _decode(_ID_LIST, body)

    # Upload

    def upload_dicom(self, dicom_bytes: bytes) -> UploadResult:
        """Upload a single DICOM instance to Orthanc.

        Args:
            dicom_bytes: Raw bytes of a ``.dcm`` file.

        Returns:
            Where the instance landed and whether it was already stored.
        """
        body = self._post_bytes("/instances", dicom_bytes)
        return _decode(_UPLOAD_RESULT, body)

    def upload_dicom_file(self, path: Path) -> UploadResult:
        """Convenience wrapper: read a ``.dcm`` file from disk and upload it.

        Args:
            path: Filesystem path to a DICOM file.
        """
        result = self.upload_dicom(path.read_bytes())
        logger.debug("Uploaded %s → %s (%s)", path.name, result.id, result.status)
        return result

    # Modalities

    def list_modalities(self) -> list[str]:
        return _decode(_ID_LIST, self._get("/modalities"))

    def list_modalities_expanded(self) -> dict[str, Modality]:
        return _decode(_MODALITY_MAP, self._get("/modalities?expand"))

    def create_modality(self, name: str, modality: Modality) -> None:
        """Declare a remote modality under *name*, replacing any previous one."""
        self._put(f"/modalities/{name}", modality.to_payload())

    def modify_modality(self, name: str, modality: Modality) -> None:
        self.create_modality(name, modality)

    def delete_modality(self, name: str) -> None:
        self._delete(f"/modalities/{name}")

    def echo(self, modality: str, timeout: int | None = None) -> dict[str, Any]:
        """Send a C-ECHO to *modality*.

        Args:
            modality: Name of a configured modality.
            timeout: Seconds the server waits for the remote node; omitted
                from the request when ``None``.
        """
        data = _only_given(Timeout=timeout)
        body = self._post(f"/modalities/{modality}/echo", data)
        return _decode(_JSON_OBJECT, body) if body.strip() else {}

    def store(self, modality: str, ids: list[str]) -> StoreResult:
        """Send entities to *modality* with C-STORE."""
        logger.info("Storing %d resource(s) to modality %s", len(ids), modality)
        body = self._post(f"/modalities/{modality}/store", ids)
        return _decode(_STORE_RESULT, body)

    # Peers

    def list_peers(self) -> list[str]:
        return _decode(_ID_LIST, self._get("/peers"))

    def list_peers_expanded(self) -> dict[str, Peer]:
        return _decode(_PEER_MAP, self._get("/peers?expand"))

    def create_peer(self, name: str, peer: Peer) -> None:
        """Declare an Orthanc peer under *name*, replacing any previous one."""
        self._put(f"/peers/{name}", peer.to_payload())

    def modify_peer(self, name: str, peer: Peer) -> None:
        self.create_peer(name, peer)

    def delete_peer(self, name: str) -> None:
        self._delete(f"/peers/{name}")

    def store_peer(self, peer: str, ids: list[str]) -> PeerStoreResult:
        """Send entities to an Orthanc peer."""
        logger.info("Storing %d resource(s) to peer %s", len(ids), peer)
        body = self._post(f"/peers/{peer}/store", ids)
        return _decode(_PEER_STORE_RESULT, body)

