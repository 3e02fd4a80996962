import pytest

from intake.pipeline.exceptions import ValidationError
from intake.pipeline.models import FileMeta
from intake.policy.validator import validate
from tests.support import MB, make_policy


def _meta(filename: str, size: int = MB) -> FileMeta:
    return FileMeta(filename=filename, size=size)


class TestValidate:
    def test_accepts_matching_file(self) -> None:
        validate(_meta("transcript.pdf", 2 * MB), make_policy())

    def test_extension_match_is_case_insensitive(self) -> None:
        validate(_meta("SCAN.PNG"), make_policy())

    def test_rejects_unlisted_extension(self) -> None:
        with pytest.raises(ValidationError, match=r"file type not supported: \.docx"):
            validate(_meta("cv.docx"), make_policy())

    def test_rejects_missing_extension(self) -> None:
        with pytest.raises(ValidationError, match=r"file type not supported: \(none\)"):
            validate(_meta("transcript"), make_policy())

    def test_size_equal_to_limit_is_accepted(self) -> None:
        validate(_meta("big.pdf", 10_485_760), make_policy())

    def test_rejects_oversized_file(self) -> None:
        with pytest.raises(ValidationError, match="exceeds max size: 12582912 > 10485760"):
            validate(_meta("big.pdf", 12 * MB), make_policy())

    def test_extension_checked_before_size(self) -> None:
        with pytest.raises(ValidationError, match="file type not supported"):
            validate(_meta("big.exe", 12 * MB), make_policy())

    def test_zero_byte_file_is_accepted(self) -> None:
        validate(_meta("empty.pdf", 0), make_policy())
