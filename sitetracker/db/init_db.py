"""
Database initialization helpers and the bundled seed list.

Models are imported so their tables get registered on Base.metadata.
"""

from typing import Any, Dict, List

from sqlalchemy.engine import Engine

from sitetracker.models.base import Base
from sitetracker.models import storage_item  # noqa: F401


def init_db(engine: Engine) -> None:
    """
    Create all tables based on SQLAlchemy models.
    """
    Base.metadata.create_all(bind=engine)


# Rollout sites shipped with the dashboard; used on first run and whenever
# the stored list cannot be decoded.
SEED_PROJECTS: List[Dict[str, Any]] = [
    {"siteCode": "UNDP-GI-0009A", "projectName": "Free-WIFI for All", "siteName": "Raele Barangay Hall - AP 1", "barangay": "Raele", "municipality": "Itbayat", "province": "Batanes", "district": "District I", "latitude": 20.728794, "longitude": 121.804235, "activationDate": "April 30, 2024", "status": "Done", "notes": ""},
    {"siteCode": "UNDP-GI-0009B", "projectName": "Free-WIFI for All", "siteName": "Raele Barangay Hall - AP 2", "barangay": "Raele", "municipality": "Itbayat", "province": "Batanes", "district": "District I", "latitude": 20.728794, "longitude": 121.804235, "activationDate": "April 30, 2024", "status": "Done", "notes": ""},
    {"siteCode": "UNDP-GI-0010A", "projectName": "Free-WIFI for All", "siteName": "Salagao Barangay Hall - AP 1", "barangay": "Salagao", "municipality": "Ivana", "province": "Batanes", "district": "District I", "latitude": 20.373518, "longitude": 121.915566, "activationDate": "May 08, 2024", "status": "Done", "notes": ""},
    {"siteCode": "UNDP-GI-0010B", "projectName": "Free-WIFI for All", "siteName": "Salagao Barangay Hall - AP 2", "barangay": "Salagao", "municipality": "Ivana", "province": "Batanes", "district": "District I", "latitude": 20.373518, "longitude": 121.915566, "activationDate": "May 08, 2024", "status": "Done", "notes": ""},
    {"siteCode": "UNDP-IP-0031A", "projectName": "Free-WIFI for All", "siteName": "Santa Lucia Barangay Hall - AP 1", "barangay": "Santa Lucia", "municipality": "Itbayat", "province": "Batanes", "district": "District I", "latitude": 20.784595, "longitude": 121.840664, "activationDate": "May 01, 2024", "status": "Done", "notes": ""},
    {"siteCode": "UNDP-IP-0031B", "projectName": "Free-WIFI for All", "siteName": "Santa Lucia Barangay Hall - AP 2", "barangay": "Santa Lucia", "municipality": "Itbayat", "province": "Batanes", "district": "District I", "latitude": 20.784595, "longitude": 121.840664, "activationDate": "May 01, 2024", "status": "Done", "notes": ""},
    {"siteCode": "UNDP-IP-0032A", "projectName": "Free-WIFI for All", "siteName": "Santa Maria Barangay Hall - AP 1", "barangay": "Santa Maria", "municipality": "Itbayat", "province": "Batanes", "district": "District I", "latitude": 20.785447, "longitude": 121.842022, "activationDate": "April 30, 2024", "status": "Done", "notes": ""},
    {"siteCode": "CYBER-1231231", "projectName": "PNPKI/CYBER", "siteName": "Iguig National High School", "barangay": "Ajat", "municipality": "Iguig", "province": "Cagayan", "district": "District III", "latitude": 17.7492984, "longitude": 121.7350356, "activationDate": "March 20, 2025", "status": "Done", "notes": ""},
    {"siteCode": "IIDB-1231231", "projectName": "IIDB", "siteName": "Iguig National High School", "barangay": "Ajat", "municipality": "Iguig", "province": "Cagayan", "district": "District III", "latitude": 17.7492984, "longitude": 121.7350356, "activationDate": "March 20, 2025", "status": "Done", "notes": ""},
    {"siteCode": "eLGU-1231231", "projectName": "DigiGov-eLGU", "siteName": "Iguig National High School", "barangay": "Ajat", "municipality": "Iguig", "province": "Cagayan", "district": "District III", "latitude": 17.7492984, "longitude": 121.7350356, "activationDate": "March 20, 2026", "status": "Pending", "notes": ""},
]
