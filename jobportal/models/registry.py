# jobportal/models/registry.py
# Import models so SQLAlchemy knows about them (for create_all)
from jobportal.models.identity import Identity, AuthSession
from jobportal.models.profile import Profile, JobSeeker
from jobportal.models.company import Company, CompanyUser
from jobportal.models.vendor import Vendor, VendorUser
from jobportal.models.job import Job

# Collections reachable through the table API, by public name
TABLES = {
    "profiles": Profile,
    "job_seekers": JobSeeker,
    "companies": Company,
    "company_users": CompanyUser,
    "vendors": Vendor,
    "vendor_users": VendorUser,
    "jobs": Job,
}

__all__ = ["Identity", "AuthSession", "TABLES"]
