import psycopg
from psycopg.rows import dict_row

from intake.config.settings import Settings
from intake.database.connection import get_connection
from intake.policy.base import BasePolicySource
from intake.policy.builder import build_policy
from intake.policy.exceptions import PolicySourceError
from intake.policy.models import CategoryPolicy


class PostgresPolicySource(BasePolicySource):
    """Reads category policies from the document_categories table."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def load(self) -> list[CategoryPolicy]:
        try:
            with get_connection(self._settings) as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        """
                        SELECT category_id, title, document_type_hint, required,
                               max_tasks, accepted_extensions, max_file_size_bytes,
                               confidence_threshold
                        FROM document_categories
                        ORDER BY category_id
                        """
                    )
                    rows = cur.fetchall()
        except psycopg.Error as exc:
            raise PolicySourceError(f"Failed to load policies from database: {exc}") from exc

        return [
            build_policy(dict(row), self._settings.default_confidence_threshold)
            for row in rows
        ]
