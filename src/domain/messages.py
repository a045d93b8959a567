"""User-facing messages for verification and recovery flows."""

# ========== VALIDATION ==========
ERROR_USERNAME_REQUIRED = "Enter a username."
ERROR_USERNAME_TOO_SHORT = "Username must be at least {min} characters."
ERROR_USERNAME_TOO_LONG = "Username must be at most {max} characters."
ERROR_USERNAME_CHARSET = "Username may contain only letters, digits, underscore and hyphen."
ERROR_EMAIL_REQUIRED = "Enter an email address."
ERROR_EMAIL_FORMAT = "Invalid email format."
ERROR_CODE_FORMAT = "Enter the {length}-digit code."
ERROR_PASSWORD_REQUIRED = "Enter a password."
ERROR_PASSWORD_TOO_SHORT = "Password must be at least {min} characters."
ERROR_PASSWORD_TOO_LONG = "Password must be at most {max} characters."
ERROR_PASSWORD_MISMATCH = "Passwords do not match."
ERROR_FULL_NAME_TOO_LONG = "Full name must be at most {max} characters."
ERROR_SAME_EMAIL = "This is already your current email."
ERROR_UNKNOWN_ACCOUNT = "Choose one of the listed accounts."
ERROR_LOGIN_REQUIRED = "Enter your username or email."

# ========== SERVER-REPORTED ==========
ERROR_USERNAME_TAKEN = "This username is already taken. Please choose another one."
ERROR_ACCOUNT_EXISTS = "An account with this username or email already exists."
ERROR_INVALID_CREDENTIALS = "Invalid credentials."
ERROR_INVALID_CODE = "Invalid or expired code."
ERROR_CODE_EXPIRED = "The code has expired. Request a new one."
ERROR_BAD_REQUEST = "The request was rejected."
ERROR_TOO_MANY_REQUESTS = "Too many requests. Try again later."
ERROR_SERVER = "Server error. Try again."
ERROR_TIMEOUT = "The request timed out. Try again."
ERROR_NETWORK = "Network error. Check your connection and try again."
ERROR_BAD_RESPONSE = "Could not process the server response."

# ========== FLOW STATE ==========
ERROR_WRONG_STAGE = "This step is not available right now."
ERROR_STALE_SESSION = "This flow is no longer active. Start again."
ERROR_NOT_SIGNED_IN = "Sign in first."
ERROR_SESSION_LOST = (
    "Registration data was lost. Your account may already exist: try signing in."
)
ERROR_SESSION_EXPIRED = (
    "Your session expired. The account may already be registered: try signing in."
)

# ========== PROMPTS ==========
PROMPT_RESET_TITLE = "Confirm password change"
PROMPT_RESET_MESSAGE = "Are you sure you want to change your password?"
