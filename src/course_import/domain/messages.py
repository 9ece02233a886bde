"""Human readable messages for import error and status codes."""

from __future__ import annotations

MESSAGES: dict[str, str] = {
    "cannotforcelang": "You are not allowed to force the language of this course.",
    "cannotreadbackupfile": "Cannot read the backup file.",
    "couldnotresolvecatgorybyid": "Could not resolve category by ID.",
    "couldnotresolvecatgorybyidnumber": "Could not resolve category by ID number.",
    "couldnotresolvecatgorybypath": "Could not resolve category by path.",
    "coursecreated": "Course created.",
    "coursedoesnotexistandcreatenotallowed": (
        "The course does not exist and creating courses is not allowed."
    ),
    "courseexistsanduploadnotallowed": (
        "The course exists and updating courses is not allowed."
    ),
    "courserestored": "Course restored.",
    "coursetorestorefromdoesnotexist": "The course to restore from does not exist.",
    "enddatebeforestartdate": "The course end date must be after the start date.",
    "enrolmentsprocessed": "Enrolment methods processed.",
    "errorwhileprocessingenrolments": "Error while processing the enrolment methods.",
    "errorwhilerestoringcourse": "Error while restoring the course.",
    "generatedshortnamealreadyinuse": "The generated shortname is already in use.",
    "generatedshortnameinvalid": "The generated shortname is invalid.",
    "idnumberalreadyinuse": "ID number already used by a course.",
    "invalidbackupfile": "Invalid backup file.",
    "invalidcourseformat": "Invalid course format.",
    "invalidenddate": "Invalid end date: {}.",
    "invalidfullnametoolong": "The fullname is too long (limit is {} characters).",
    "invalidnumericfield": "Invalid numeric value for field: {}.",
    "invalidroles": "Invalid role names: {}.",
    "invalidshortname": "Invalid shortname.",
    "invalidshortnametoolong": "The shortname is too long (limit is {} characters).",
    "invalidstartdate": "Invalid start date: {}.",
    "invalidvisibilitymode": "Invalid visibility mode, must be 0 or 1.",
    "missingcategory": "A category is required to create a course.",
    "missingfullname": "A fullname is required to create a course.",
    "missingshortnamenotemplate": "Missing shortname and shortname template not set.",
    "nostartdatenoenddate": "The course end date requires a start date.",
    "rowfailed": "Unexpected failure while importing this row.",
}


def message(code: str, *args: object) -> str:
    """Return the message for ``code`` formatted with ``args``."""
    template = MESSAGES.get(code, code)
    return template.format(*args) if args else template
