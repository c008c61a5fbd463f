"""
Orthanc API Client — typed bindings for the Orthanc REST API.

Lists, fetches, deletes, modifies, anonymizes, searches, transfers and
uploads DICOM resources held by an Orthanc server, and manages its
remote modalities and peers.
"""

__version__ = "0.1.0"
