class SubmissionError(Exception):
    """Test topshirishdagi xatolar; http_status javob kodini belgilaydi."""

    http_status = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = str(message)


class SubmissionValidationError(SubmissionError):
    """Missing or malformed submission fields. Nothing is written."""

    http_status = 400


class SubmissionPersistenceError(SubmissionError):
    """A database operation failed. The transaction is rolled back."""

    http_status = 500
