"""
Tests for bullhorn.query (query grammar and result normalisation).
"""
import pytest
from pydantic import ValidationError

from bullhorn.query import (
    CandidateResult,
    SearchCommand,
    build_candidate_query,
    clamp_result_count,
    normalize_candidate,
)


class TestBuildQuery:
    def test_empty_command_only_excludes_deleted(self):
        assert build_candidate_query(SearchCommand()) == "isDeleted:false"

    def test_all_criteria(self):
        command = SearchCommand(
            job_title="SRE",
            skills=["Go", "Kubernetes"],
            location="London",
            seniority="senior",
        )
        assert build_candidate_query(command) == (
            'title:"SRE" AND (skills:"Go" OR skills:"Kubernetes") AND '
            'address.city:"London" AND employmentPreference:"senior" AND isDeleted:false'
        )

    def test_single_skill_is_still_grouped(self):
        query = build_candidate_query(SearchCommand(skills=["Python"]))
        assert query == '(skills:"Python") AND isDeleted:false'

    def test_quotes_in_values_are_escaped(self):
        query = build_candidate_query(SearchCommand(job_title='Senior "Rockstar" Dev'))
        assert query.startswith('title:"Senior \\"Rockstar\\" Dev"')

    def test_blank_skills_are_dropped(self):
        command = SearchCommand(skills=["  ", "Rust ", ""])
        assert command.skills == ["Rust"]
        assert build_candidate_query(command) == '(skills:"Rust") AND isDeleted:false'

    def test_seniority_is_case_insensitive(self):
        assert build_candidate_query(SearchCommand(seniority="Lead")) == (
            'employmentPreference:"lead" AND isDeleted:false'
        )


class TestSearchCommand:
    @pytest.mark.parametrize("value,expected", [(-3, 1), (0, 1), (5, 5), (20, 20), (500, 20)])
    def test_clamp(self, value, expected):
        assert clamp_result_count(value) == expected
        assert SearchCommand(top_n=value).top_n == expected

    def test_unknown_seniority_rejected(self):
        with pytest.raises(ValidationError):
            SearchCommand(seniority="intern")

    def test_non_integer_top_n_rejected(self):
        with pytest.raises(ValidationError):
            SearchCommand(top_n="lots")


class TestNormalizeCandidate:
    def test_full_record(self):
        raw = {
            "id": 101,
            "firstName": "Ada",
            "lastName": "Lovelace",
            "name": "Ada Lovelace",
            "address": {"city": "London", "state": "Greater London"},
            "employmentPreference": "Permanent",
            "skills": {"total": 2, "data": [{"id": 1, "name": "Python"}, {"id": 2, "name": "Go"}]},
            "dateLastModified": 1718000000000,
        }
        result = normalize_candidate(raw)
        assert result == CandidateResult(
            id=101,
            name="Ada Lovelace",
            city="London",
            state="Greater London",
            employment_preference="Permanent",
            skills=["Python", "Go"],
            last_updated=1718000000000,
        )

    def test_record_without_id_is_dropped(self):
        assert normalize_candidate({"name": "Nobody"}) is None

    def test_name_falls_back_to_first_and_last(self):
        result = normalize_candidate({"id": 7, "firstName": "Grace", "lastName": "Hopper"})
        assert result.name == "Grace Hopper"

    def test_missing_fields_become_none(self):
        result = normalize_candidate({"id": 8, "name": "Alan"})
        assert result.city is None
        assert result.state is None
        assert result.employment_preference is None
        assert result.skills is None
        assert result.last_updated is None

    @pytest.mark.parametrize(
        "skills,expected",
        [
            ("Python, Go ,", ["Python", "Go"]),
            (["SQL", " dbt "], ["SQL", "dbt"]),
            ({"data": []}, None),
            ("", None),
        ],
    )
    def test_skill_shapes(self, skills, expected):
        assert normalize_candidate({"id": 1, "name": "X", "skills": skills}).skills == expected

    def test_serialises_with_camel_case_keys(self):
        result = normalize_candidate({
            "id": 4,
            "name": "Mary Seacole",
            "employmentPreference": "Contract",
            "dateLastModified": 1718000000000,
        })
        dumped = result.model_dump(by_alias=True)
        assert dumped["employmentPreference"] == "Contract"
        assert dumped["lastUpdated"] == 1718000000000
        assert "employment_preference" not in dumped
