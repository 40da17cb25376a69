"""
Tests for the import, export and maintenance workflows.

The People API client is a MagicMock returned by the api_factory; files are
written under pytest's tmp_path.
"""

import json
from unittest.mock import MagicMock

import pytest

from contacts_cli.api.people_api import PeopleAPIError
from contacts_cli.storage.store import JsonStore
from contacts_cli.sync.errors import NotFoundError, UnimplementedError, ValidationError
from contacts_cli.sync.orchestrator import SyncOrchestrator
from contacts_cli.sync.sanitizer import DEFAULT_GROUP
from contacts_cli.sync.writer import DEFAULT_BATCH_DELAY, DEFAULT_UPDATE_DELAY


@pytest.fixture
def api():
    api = MagicMock()
    api.batch_create_contacts.side_effect = lambda people: [
        dict(p, resourceName=f"people/new{i}") for i, p in enumerate(people)
    ]
    api.create_contact.side_effect = lambda person: dict(
        person, resourceName="people/new"
    )
    return api


@pytest.fixture
def api_factory(api):
    return MagicMock(return_value=api)


@pytest.fixture
def store(tmp_path):
    return JsonStore(tmp_path / "output")


@pytest.fixture
def orchestrator(api_factory, store):
    return SyncOrchestrator(
        api_factory=api_factory,
        store=store,
        rate_limiter=MagicMock(),
        update_rate_limiter=MagicMock(),
    )


@pytest.fixture
def contacts_file(tmp_path):
    path = tmp_path / "contacts.json"
    path.write_text(
        json.dumps(
            [
                {
                    "resourceName": "people/c1",
                    "etag": "e1",
                    "names": [
                        {
                            "displayName": "Ada",
                            "metadata": {"source": {"type": "CONTACT", "id": "1"}},
                        }
                    ],
                    "memberships": [
                        {
                            "contactGroupMembership": {
                                "contactGroupId": "old",
                                "contactGroupResourceName": "contactGroups/old",
                            }
                        }
                    ],
                },
                {
                    "resourceName": "people/c2",
                    "etag": "e2",
                    "emailAddresses": [
                        {
                            "value": "grace@example.com",
                            "metadata": {"source": {"type": "CONTACT", "id": "2"}},
                        }
                    ],
                },
            ]
        ),
        encoding="utf-8",
    )
    return path


def _membership_names(person):
    return [
        m["contactGroupMembership"]["contactGroupResourceName"]
        for m in person["memberships"]
    ]


class TestExportContacts:
    """Tests for export_contacts."""

    def test_writes_contacts_verbatim(self, orchestrator, api, api_factory, store):
        """Test that fetched records are saved unmodified."""
        people = [
            {"resourceName": "people/c1", "etag": "a", "photos": [{"url": "x"}]},
            {"resourceName": "people/c2", "etag": "b"},
        ]
        api.list_connections.return_value = (people, None)

        result = orchestrator.export_contacts("me@example.com")

        api_factory.assert_called_once_with("me@example.com")
        assert result.count == 2
        assert result.path.parent == store.output_dir / "me@example.com"
        assert result.path.name.startswith("contacts-")
        assert json.loads(result.path.read_text(encoding="utf-8")) == people

    def test_custom_output_relative_to_output_dir(self, orchestrator, api, store):
        api.list_connections.return_value = ([], None)

        result = orchestrator.export_contacts("me@example.com", output="mine.json")

        assert result.path == store.output_dir / "mine.json"
        assert json.loads(result.path.read_text(encoding="utf-8")) == []

    def test_missing_account(self, orchestrator, api_factory):
        with pytest.raises(ValidationError):
            orchestrator.export_contacts("")
        api_factory.assert_not_called()

    def test_fetch_error_writes_nothing(self, orchestrator, api, store):
        """Test that a failed page aborts the export without a file."""
        api.list_connections.side_effect = PeopleAPIError("boom")

        with pytest.raises(PeopleAPIError):
            orchestrator.export_contacts("me@example.com")

        assert not store.output_dir.exists()


class TestImportContacts:
    """Tests for import_contacts."""

    def test_two_records_with_group(self, orchestrator, api, contacts_file):
        """Test that both records are submitted sanitized with the group."""
        result = orchestrator.import_contacts(
            "dest@example.com", file=contacts_file, groups=["friends"]
        )

        api.batch_create_contacts.assert_called_once()
        submitted = api.batch_create_contacts.call_args.args[0]
        assert len(submitted) == 2
        for person in submitted:
            assert _membership_names(person) == [
                DEFAULT_GROUP,
                "contactGroups/friends",
            ]
            assert "resourceName" not in person
            assert "etag" not in person
        assert "id" not in submitted[0]["names"][0]["metadata"]["source"]

        assert result.read_count == 2
        assert len(result.write.succeeded) == 2
        assert not result.write.has_failures()

    def test_failed_artifact_always_written(self, orchestrator, store, contacts_file):
        """Test that an empty failure file is written after a clean run."""
        result = orchestrator.import_contacts("dest@example.com", file=contacts_file)

        assert result.failed_path is not None
        assert result.failed_path.parent == store.output_dir / "dest@example.com"
        assert result.failed_path.name.startswith("failed-contacts-")
        assert json.loads(result.failed_path.read_text(encoding="utf-8")) == []
        assert result.created_path is None

    def test_failed_batches_saved(self, orchestrator, api, contacts_file):
        """Test that a rejected batch lands in the failure file."""
        api.batch_create_contacts.side_effect = PeopleAPIError("rejected", 400)

        result = orchestrator.import_contacts("dest@example.com", file=contacts_file)

        assert result.write.failed_count == 2
        saved = json.loads(result.failed_path.read_text(encoding="utf-8"))
        assert len(saved) == 1
        assert len(saved[0]) == 2

    def test_save_results(self, orchestrator, contacts_file):
        result = orchestrator.import_contacts(
            "dest@example.com", file=contacts_file, save_results=True
        )

        created = json.loads(result.created_path.read_text(encoding="utf-8"))
        assert [p["resourceName"] for p in created] == ["people/new0", "people/new1"]

    def test_limit(self, orchestrator, api, contacts_file):
        """Test that only the first N records are imported."""
        result = orchestrator.import_contacts(
            "dest@example.com", file=contacts_file, limit=1
        )

        assert result.read_count == 1
        api.create_contact.assert_called_once()
        api.batch_create_contacts.assert_not_called()

    def test_batch_size_and_delay(self, api_factory, api, store, contacts_file):
        limiter = MagicMock()
        orchestrator = SyncOrchestrator(
            api_factory=api_factory, store=store, batch_size=1, rate_limiter=limiter
        )

        orchestrator.import_contacts("dest@example.com", file=contacts_file)

        assert api.create_contact.call_count == 2
        limiter.wait.assert_called_once()

    def test_no_destination(self, orchestrator, api_factory, contacts_file):
        with pytest.raises(ValidationError, match="destination"):
            orchestrator.import_contacts(None, file=contacts_file)
        api_factory.assert_not_called()

    def test_missing_file(self, orchestrator, api_factory, tmp_path):
        """Test that a missing file is reported before authorizing."""
        with pytest.raises(NotFoundError):
            orchestrator.import_contacts(
                "dest@example.com", file=tmp_path / "missing.json"
            )
        api_factory.assert_not_called()

    def test_source_only_not_implemented(self, orchestrator, api_factory):
        with pytest.raises(UnimplementedError):
            orchestrator.import_contacts("dest@example.com", source="src@example.com")
        api_factory.assert_not_called()

    def test_no_source_or_file(self, orchestrator):
        with pytest.raises(ValidationError, match="No source account or file"):
            orchestrator.import_contacts("dest@example.com")

    def test_file_takes_precedence_over_source(self, orchestrator, contacts_file):
        result = orchestrator.import_contacts(
            "dest@example.com", file=contacts_file, source="src@example.com"
        )
        assert result.read_count == 2

    def test_invalid_limit(self, orchestrator, contacts_file):
        with pytest.raises(ValidationError, match="Limit"):
            orchestrator.import_contacts("dest@example.com", file=contacts_file, limit=0)

    def test_file_not_an_array(self, orchestrator, tmp_path):
        path = tmp_path / "object.json"
        path.write_text('{"connections": []}', encoding="utf-8")

        with pytest.raises(ValidationError, match="JSON array"):
            orchestrator.import_contacts("dest@example.com", file=path)


class TestCleanContacts:
    """Tests for clean_contacts."""

    def test_requires_account(self, orchestrator):
        with pytest.raises(ValidationError, match="account"):
            orchestrator.clean_contacts(None, urls=True, url_type="profile")

    def test_urls_requires_type(self, orchestrator):
        with pytest.raises(ValidationError, match="url type"):
            orchestrator.clean_contacts("me@example.com", urls=True)

    def test_requires_an_action(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.clean_contacts("me@example.com")

    def test_external_ids_not_implemented(self, orchestrator, api_factory):
        with pytest.raises(UnimplementedError):
            orchestrator.clean_contacts("me@example.com", external_ids=True)
        api_factory.assert_not_called()

    def test_fetches_and_cleans_urls(self, orchestrator, api):
        """Test that contacts are fetched and matching URLs removed."""
        api.list_connections.return_value = (
            [
                {
                    "resourceName": "people/c1",
                    "etag": "e1",
                    "urls": [
                        {"value": "https://a", "type": "profile"},
                        {"value": "https://b", "type": "blog"},
                    ],
                },
                {"resourceName": "people/c2", "etag": "e2"},
            ],
            None,
        )
        api.update_contact.return_value = {"resourceName": "people/c1"}

        result = orchestrator.clean_contacts(
            "me@example.com", urls=True, url_type="profile"
        )

        api.update_contact.assert_called_once_with(
            "people/c1",
            {"etag": "e1", "urls": [{"value": "https://b", "type": "blog"}]},
            ["urls"],
        )
        assert len(result.updated) == 1
        assert result.skipped == 1

    def test_updates_paced_by_update_limiter(self, api_factory, api, store):
        """Test that clean waits on the update limiter, not the batch one."""
        api.list_connections.return_value = (
            [
                {
                    "resourceName": f"people/c{n}",
                    "etag": "e",
                    "urls": [{"type": "profile"}],
                }
                for n in range(3)
            ],
            None,
        )
        batch_limiter = MagicMock()
        update_limiter = MagicMock()
        orchestrator = SyncOrchestrator(
            api_factory=api_factory,
            store=store,
            rate_limiter=batch_limiter,
            update_rate_limiter=update_limiter,
        )

        orchestrator.clean_contacts("me@example.com", urls=True, url_type="profile")

        assert update_limiter.wait.call_count == 2
        batch_limiter.wait.assert_not_called()

    def test_default_update_delay(self, api_factory, store):
        orchestrator = SyncOrchestrator(api_factory=api_factory, store=store)
        assert orchestrator.update_rate_limiter.delay == DEFAULT_UPDATE_DELAY
        assert orchestrator.rate_limiter.delay == DEFAULT_BATCH_DELAY

    def test_file_without_action_changes_nothing(
        self, orchestrator, api, contacts_file
    ):
        result = orchestrator.clean_contacts("me@example.com", file=contacts_file)

        assert result.skipped == 2
        api.update_contact.assert_not_called()
        api.list_connections.assert_not_called()


class TestListContactGroups:
    """Tests for list_contact_groups."""

    def test_lists_groups(self, orchestrator, api):
        api.list_contact_groups.return_value = (
            [
                {
                    "resourceName": "contactGroups/myContacts",
                    "etag": "g1",
                    "name": "myContacts",
                    "formattedName": "My Contacts",
                    "groupType": "SYSTEM_CONTACT_GROUP",
                }
            ],
            None,
        )

        result = orchestrator.list_contact_groups("me@example.com")

        assert result.groups[0].display_name == "My Contacts"
        assert result.path is None

    def test_writes_output_and_reports_overwrite(self, orchestrator, api, tmp_path):
        """Test that an existing output file is overwritten."""
        groups = [{"resourceName": "contactGroups/abc", "etag": "g", "name": "abc"}]
        api.list_contact_groups.return_value = (groups, None)
        target = tmp_path / "nested" / "groups.json"

        first = orchestrator.list_contact_groups("me@example.com", output=target)
        second = orchestrator.list_contact_groups("me@example.com", output=target)

        assert first.path == target
        assert not first.overwritten
        assert second.overwritten
        assert json.loads(target.read_text(encoding="utf-8")) == groups

    def test_requires_account(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.list_contact_groups("")


class TestSummarizeFile:
    """Tests for summarize_file."""

    def test_counts_contacts(self, orchestrator, contacts_file, api_factory):
        summary = orchestrator.summarize_file(contacts_file)

        assert summary.total == 2
        api_factory.assert_not_called()

    def test_requires_file(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.summarize_file(None)

    def test_missing_file(self, orchestrator, tmp_path):
        with pytest.raises(NotFoundError):
            orchestrator.summarize_file(tmp_path / "nope.json")
