"""
utils/constants.py

Purpose: Problem titles and details

Titles and details are part of the public API contract; clients match on
them, so they must not be reworded.
"""

# ==============================================
# CREATE
# ==============================================

CREATE_NOT_ALLOWED_TITLE = "You're not allowed to create users on this system"
CREATE_NOT_ALLOWED_DETAIL = "Users are created via 3rd party (Facebook) authentication"


# ==============================================
# STORE FAILURES
# ==============================================

UNEXPECTED_PROBLEM_TITLE = "Unexpected problem"

LIST_USERS_FAILED = "Could not list users due to internal error"
GET_USER_FAILED = "Could not retrieve user due to internal error"
GET_COHORTS_FAILED = "Could not retrieve cohorts due to internal error"
ADD_COHORT_FAILED = "Could not save cohort due to internal error"
REMOVE_COHORT_FAILED = "Could not remove cohort due to internal error"
SAVE_USER_FAILED = "Could not save user due to internal error"
DELETE_USER_FAILED = "Could not delete user due to internal error"
GET_MESSAGES_FAILED = "Could not retrieve messages due to internal error"


# ==============================================
# SELF-SCOPED OPERATIONS
# ==============================================

SAVE_USER_TITLE = "Could not save user information"
DELETE_USER_TITLE = "Could not delete user"
RESOLVE_USER_DETAIL = "There was an error processing the request to save your information"

INVALID_USERNAME_TITLE = "Invalid Username"
INVALID_USERNAME_DETAIL = "User names must be 5-16 characters"
USERNAME_TAKEN_DETAIL = "That user name is already taken"
