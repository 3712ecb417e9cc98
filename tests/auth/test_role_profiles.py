"""
Tests for role parsing and role-specific registration profiles.
"""
from datetime import date

import pytest

from medrecords.auth.exceptions import ValidationException
from medrecords.auth.models import Gender, UserRole
from medrecords.auth.schemas import (
    ROLE_PROFILES,
    DoctorProfile,
    PatientProfile,
    RegisterRequest,
    parse_role,
    parse_role_profile,
)


def test_every_role_has_a_profile():
    assert set(ROLE_PROFILES) == set(UserRole)


@pytest.mark.parametrize("value", [None, ""])
def test_parse_role_defaults_to_patient(value):
    assert parse_role(value) is UserRole.PATIENT


def test_parse_role_rejects_unknown():
    with pytest.raises(ValidationException) as exc_info:
        parse_role("nurse")
    assert exc_info.value.detail == "Invalid role."


def test_doctor_profile():
    data = RegisterRequest(specialization="Neurology", licenseNumber="L-9")
    profile = parse_role_profile(UserRole.DOCTOR, data)
    assert isinstance(profile, DoctorProfile)
    assert profile.model_dump() == {
        "role": UserRole.DOCTOR,
        "specialization": "Neurology",
        "license_number": "L-9",
        "hospital_affiliation": None,
    }


@pytest.mark.parametrize("fields", [{}, {"specialization": "Neurology"}, {"licenseNumber": "L-9"}])
def test_doctor_profile_missing_fields(fields):
    with pytest.raises(ValidationException) as exc_info:
        parse_role_profile(UserRole.DOCTOR, RegisterRequest(**fields))
    assert exc_info.value.detail == "Doctors must provide specialization and license number."


def test_patient_profile():
    data = RegisterRequest(gender="male", dateOfBirth="1985-02-01")
    profile = parse_role_profile(UserRole.PATIENT, data)
    assert isinstance(profile, PatientProfile)
    assert profile.gender is Gender.MALE
    assert profile.date_of_birth == date(1985, 2, 1)


def test_patient_profile_missing_gender():
    with pytest.raises(ValidationException) as exc_info:
        parse_role_profile(UserRole.PATIENT, RegisterRequest(dateOfBirth="1985-02-01"))
    assert exc_info.value.detail == "Patients must provide gender and date of birth."


@pytest.mark.parametrize("role", [UserRole.LAB_TECHNICIAN, UserRole.ADMIN])
def test_staff_profiles_need_nothing(role):
    profile = parse_role_profile(role, RegisterRequest())
    assert profile.model_dump() == {"role": role}
