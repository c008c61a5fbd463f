"""
Orthanc API Client — Resource Models.

Typed, immutable representations of the Orthanc REST resources: the
DICOM hierarchy (patient → study → series → instance), remote nodes
(modalities and peers), server information, request bodies and the
results returned by mutating calls.

Each wire key is mapped through an explicit ``alias``; responses may
carry extra keys that are ignored, except inside tag maps which are
kept verbatim.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from orthanc_api.dicom.fields import EntityKind, TagMap, Timestamp


class OrthancModel(BaseModel):
    """Base for every model exchanged with Orthanc."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


# DICOM hierarchy


class Patient(OrthancModel):
    id: str = Field(alias="ID")
    is_stable: bool = Field(alias="IsStable")
    last_update: Timestamp = Field(alias="LastUpdate")
    main_dicom_tags: TagMap = Field(alias="MainDicomTags")
    studies: list[str] = Field(alias="Studies")


class Study(OrthancModel):
    id: str = Field(alias="ID")
    is_stable: bool = Field(alias="IsStable")
    last_update: Timestamp = Field(alias="LastUpdate")
    main_dicom_tags: TagMap = Field(alias="MainDicomTags")
    patient_id: str = Field(alias="ParentPatient")
    patient_main_dicom_tags: TagMap = Field(alias="PatientMainDicomTags")
    series: list[str] = Field(alias="Series")


class Series(OrthancModel):
    id: str = Field(alias="ID")
    status: str = Field(alias="Status")
    is_stable: bool = Field(alias="IsStable")
    last_update: Timestamp = Field(alias="LastUpdate")
    main_dicom_tags: TagMap = Field(alias="MainDicomTags")
    study_id: str = Field(alias="ParentStudy")
    expected_instance_count: int | None = Field(default=None, alias="ExpectedNumberOfInstances")
    instances: list[str] = Field(alias="Instances")


class Instance(OrthancModel):
    id: str = Field(alias="ID")
    last_update: Timestamp = Field(alias="LastUpdate")
    main_dicom_tags: TagMap = Field(alias="MainDicomTags")
    series_id: str = Field(alias="ParentSeries")
    index_in_series: int = Field(alias="IndexInSeries")
    file_id: str = Field(alias="FileUuid")
    file_size: int = Field(alias="FileSize")


ENTITY_MODELS: dict[EntityKind, type[OrthancModel]] = {
    EntityKind.PATIENT: Patient,
    EntityKind.STUDY: Study,
    EntityKind.SERIES: Series,
    EntityKind.INSTANCE: Instance,
}


# Remote nodes and server information


class Modality(OrthancModel):
    """A remote DICOM node configured on the server."""

    aet: str = Field(alias="AET")
    host: str = Field(alias="Host")
    port: int = Field(alias="Port")
    manufacturer: str | None = Field(default=None, alias="Manufacturer")
    allow_echo: bool | None = Field(default=None, alias="AllowEcho")
    allow_find: bool | None = Field(default=None, alias="AllowFind")
    allow_get: bool | None = Field(default=None, alias="AllowGet")
    allow_move: bool | None = Field(default=None, alias="AllowMove")
    allow_store: bool | None = Field(default=None, alias="AllowStore")
    allow_n_action: bool | None = Field(default=None, alias="AllowNAction")
    allow_event_report: bool | None = Field(default=None, alias="AllowEventReport")
    allow_transcoding: bool | None = Field(default=None, alias="AllowTranscoding")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Peer(OrthancModel):
    """Another Orthanc server reachable over its REST API."""

    url: str = Field(alias="Url")
    username: str | None = Field(default=None, alias="Username")
    password: str | None = Field(default=None, alias="Password")
    http_headers: dict[str, str] | None = Field(default=None, alias="HttpHeaders")
    certificate_file: str | None = Field(default=None, alias="CertificateFile")
    certificate_key_file: str | None = Field(default=None, alias="CertificateKeyFile")
    certificate_key_password: str | None = Field(default=None, alias="CertificateKeyPassword")

    @field_validator("http_headers", mode="before")
    @classmethod
    def _drop_redacted_headers(cls, value: Any) -> Any:
        # When reading peers back, Orthanc lists header names only.
        if isinstance(value, list):
            return None
        return value

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class System(OrthancModel):
    """Read-only snapshot of the server identity (``GET /system``)."""

    name: str = Field(alias="Name")
    version: str = Field(alias="Version")
    api_version: int = Field(alias="ApiVersion")
    database_version: int = Field(alias="DatabaseVersion")
    database_backend_plugin: str | None = Field(default=None, alias="DatabaseBackendPlugin")
    dicom_aet: str = Field(alias="DicomAet")
    dicom_port: int = Field(alias="DicomPort")
    http_port: int = Field(alias="HttpPort")
    is_http_server_secure: bool = Field(alias="IsHttpServerSecure")
    plugins_enabled: bool = Field(alias="PluginsEnabled")
    storage_area_plugin: str | None = Field(default=None, alias="StorageAreaPlugin")


class Statistics(OrthancModel):
    """Storage counters (``GET /statistics``)."""

    count_patients: int = Field(alias="CountPatients")
    count_studies: int = Field(alias="CountStudies")
    count_series: int = Field(alias="CountSeries")
    count_instances: int = Field(alias="CountInstances")
    total_disk_size_mb: int = Field(alias="TotalDiskSizeMB")
    total_uncompressed_size_mb: int = Field(alias="TotalUncompressedSizeMB")


# Request bodies


class Search(OrthancModel):
    """Body of ``POST /tools/find``."""

    level: EntityKind = Field(alias="Level")
    query: TagMap = Field(alias="Query")
    expand: bool | None = Field(default=None, alias="Expand")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Modification(OrthancModel):
    """Body of ``POST /{level}/{id}/modify``.

    Fields are not nullable: a field is either left unset, and then
    absent from the payload, or set to a concrete value which is always
    sent, even when empty.
    """

    replace: dict[str, str] = Field(default_factory=dict, alias="Replace")
    remove: list[str] = Field(default_factory=list, alias="Remove")
    force: bool = Field(default=False, alias="Force")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class Anonymization(OrthancModel):
    """Body of ``POST /{level}/{id}/anonymize``; same unset rules as :class:`Modification`."""

    replace: dict[str, str] = Field(default_factory=dict, alias="Replace")
    keep: list[str] = Field(default_factory=list, alias="Keep")
    keep_private_tags: bool = Field(default=False, alias="KeepPrivateTags")
    dicom_version: str = Field(default="", alias="DicomVersion")
    force: bool = Field(default=False, alias="Force")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


# Operation results


class Ancestor(OrthancModel):
    """Nearest surviving parent of a deleted entity."""

    id: str = Field(alias="ID")
    path: str = Field(alias="Path")
    entity: EntityKind = Field(alias="Type")


class RemainingAncestor(OrthancModel):
    """Body of every ``DELETE /{level}/{id}`` response.

    ``remaining_ancestor`` is ``None`` when a patient was deleted or the
    whole chain above the deleted entity went with it.
    """

    remaining_ancestor: Ancestor | None = Field(alias="RemainingAncestor")


class UploadResult(OrthancModel):
    id: str = Field(alias="ID")
    status: str = Field(alias="Status")
    path: str = Field(alias="Path")
    parent_patient: str = Field(alias="ParentPatient")
    parent_study: str = Field(alias="ParentStudy")
    parent_series: str = Field(alias="ParentSeries")

    @property
    def already_stored(self) -> bool:
        """True when the uploaded instance was a duplicate."""
        return self.status == "AlreadyStored"


class StoreResult(OrthancModel):
    """Result of a C-STORE to a modality."""

    description: str = Field(alias="Description")
    local_aet: str = Field(alias="LocalAet")
    remote_aet: str = Field(alias="RemoteAet")
    parent_resources: list[str] = Field(alias="ParentResources")
    instances_count: int = Field(alias="InstancesCount")
    failed_instances_count: int = Field(alias="FailedInstancesCount")


class PeerStoreResult(OrthancModel):
    """Result of sending resources to an Orthanc peer."""

    description: str = Field(alias="Description")
    peer: list[str] = Field(alias="Peer")
    parent_resources: list[str] = Field(alias="ParentResources")
    instances_count: int = Field(alias="InstancesCount")
    failed_instances_count: int = Field(alias="FailedInstancesCount")


class ModificationResult(OrthancModel):
    """Entity created by a modification or anonymization."""

    id: str = Field(alias="ID")
    patient_id: str = Field(alias="PatientID")
    path: str = Field(alias="Path")
    entity: EntityKind = Field(alias="Type")


class ApiError(OrthancModel):
    """Structured failure description returned with HTTP errors."""

    method: str = Field(alias="Method")
    uri: str = Field(alias="Uri")
    message: str = Field(alias="Message")
    details: str | None = Field(default=None, alias="Details")
    http_status: int = Field(alias="HttpStatus")
    http_error: str = Field(alias="HttpError")
    orthanc_status: int = Field(alias="OrthancStatus")
    orthanc_error: str = Field(alias="OrthancError")
