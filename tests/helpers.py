# journalsync Test Helpers
# Type names and serialized item content shared by the tests

PATIENT = "org.openmrs.Patient"
ENCOUNTER = "org.openmrs.Encounter"
OBS = "org.openmrs.Obs"
PERSON_NAME = "org.openmrs.PersonName"
PERSISTENT_SET = "org.hibernate.collection.PersistentSet"


def patient_xml(uuid: str) -> str:
    """Serialized patient with no references to other entities."""
    return (
        f"<{PATIENT}>"
        f'<uuid type="string">{uuid}</uuid>'
        f'<gender type="string">F</gender>'
        f"</{PATIENT}>"
    )


def encounter_xml(uuid: str, patient_uuid: str) -> str:
    """Serialized encounter referencing a patient through its text value."""
    return (
        f"<{ENCOUNTER}>"
        f'<uuid type="string">{uuid}</uuid>'
        f'<patient type="{PATIENT}">{patient_uuid}</patient>'
        f'<encounterDatetime type="timestamp">2024-01-01T10:00:00</encounterDatetime>'
        f"</{ENCOUNTER}>"
    )


def names_set_xml(patient_uuid: str, name_uuid: str) -> str:
    """Serialized collection wrapper referencing entities through uuid attributes."""
    return (
        f"<{PERSISTENT_SET}>"
        f'<owner type="{PATIENT}" uuid="{patient_uuid}" role="names"/>'
        f'<entry type="{PERSON_NAME}" uuid="{name_uuid}" action="update"/>'
        f"</{PERSISTENT_SET}>"
    )
