"""
Tests for the enhancement pipeline.

Focus: construction guard, ordering, and that enhancers stay independent of
each other's failures, including under concurrent use.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest
from enrichment.base import DocumentEnhancer
from enrichment.management_client import ManagementApiClient
from enrichment.resource_name import ResourceNameEnhancer
from ingestion.pipeline import (
    EnhancementPipeline,
    PipelineConfigurationError,
    attribution_specs,
    build_attribution_pipeline,
    build_pipeline,
)
from models import EndpointConfig, EnhancerSpec


class RecordingEnhancer(DocumentEnhancer):
    def __init__(self, name: str, calls: list):
        self.enhanced_field_name = name
        self.calls = calls

    def enrich(self, record):
        self.calls.append(self.enhanced_field_name)
        record[self.enhanced_field_name] = len(self.calls)
        return record


class BrokenEnhancer(DocumentEnhancer):
    enhanced_field_name = "broken"

    def enrich(self, record):
        raise RuntimeError("boom")


class TestConstruction:
    def test_zero_enhancers_is_rejected(self):
        with pytest.raises(PipelineConfigurationError):
            EnhancementPipeline([])

    def test_zero_specs_is_rejected(self, endpoint_config):
        with pytest.raises(PipelineConfigurationError):
            build_pipeline(endpoint_config, [])

    def test_attribution_without_fields_is_rejected(self, endpoint_config):
        with pytest.raises(PipelineConfigurationError):
            build_attribution_pipeline(endpoint_config, api_field=None, application_field=None)

    def test_attribution_specs(self):
        api, application = attribution_specs("api", "application")
        assert (api.field_name, api.resource_base_path, api.enhanced_field_name) == (
            "api",
            "/apis",
            "api-name",
        )
        assert (application.field_name, application.resource_base_path) == (
            "application",
            "/applications",
        )
        assert application.enhanced_field_name == "application-name"

    def test_attribution_skips_unset_field(self, endpoint_config, fake_api):
        pipeline = build_attribution_pipeline(
            endpoint_config, api_field=None, transport=fake_api.transport
        )
        assert [e.enhanced_field_name for e in pipeline.enhancers] == ["application-name"]


class TestExecution:
    def test_runs_enhancers_in_order_on_same_record(self):
        calls = []
        pipeline = EnhancementPipeline(
            [RecordingEnhancer("first", calls), RecordingEnhancer("second", calls)]
        )
        record = {"message": "GET /orders"}

        result = pipeline.enhance(record)

        assert result is record
        assert calls == ["first", "second"]
        assert record == {"message": "GET /orders", "first": 1, "second": 2}

    def test_raising_enhancer_does_not_stop_the_next(self):
        calls = []
        pipeline = EnhancementPipeline([BrokenEnhancer(), RecordingEnhancer("after", calls)])
        assert pipeline.enhance({})["after"] == 1

    def test_enhance_many(self):
        calls = []
        pipeline = EnhancementPipeline([RecordingEnhancer("n", calls)])
        records = pipeline.enhance_many([{}, {}, {}])
        assert [r["n"] for r in records] == [1, 2, 3]


class TestAttributionPipeline:
    def test_fills_both_names(self, fake_api, endpoint_config):
        fake_api.stub("/management/apis/123", json_body={"name": "My API name"})
        fake_api.stub("/management/applications/321", json_body={"name": "My app name"})
        pipeline = build_attribution_pipeline(endpoint_config, transport=fake_api.transport)

        record = pipeline.enhance({"api": "123", "application": "321"})

        assert record["api-name"] == "My API name"
        assert record["application-name"] == "My app name"
        assert fake_api.count("/management/apis/123") == 1
        assert fake_api.count("/management/applications/321") == 1

    def test_fills_defaults_when_fields_are_absent(self, fake_api, endpoint_config):
        pipeline = build_attribution_pipeline(endpoint_config, transport=fake_api.transport)
        record = pipeline.enhance({})
        assert record["api-name"] == ""
        assert record["application-name"] == ""
        assert fake_api.requests == []

    def test_fills_defaults_when_resources_are_missing(self, fake_api, endpoint_config):
        pipeline = build_attribution_pipeline(endpoint_config, transport=fake_api.transport)
        record = pipeline.enhance({"api": "123", "application": "321"})
        assert record["api-name"] == ""
        assert record["application-name"] == ""

    def test_caching_across_records(self, fake_api, endpoint_config):
        fake_api.stub("/management/apis/123", json_body={"name": "My API name"})
        pipeline = build_attribution_pipeline(endpoint_config, transport=fake_api.transport)

        pipeline.enhance({"api": "123"})
        record = pipeline.enhance({"api": "123"})

        assert record["api-name"] == "My API name"
        assert fake_api.count("/management/apis/123") == 1
        assert fake_api.count("/management/applications/321") == 0

    def test_unreachable_endpoint_does_not_affect_other_enhancer(self, fake_api):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        down = EndpointConfig(endpoint="http://down.test/management", lookup_max_attempts=1)
        up = EndpointConfig(endpoint="http://management.test/management", lookup_max_attempts=1)
        fake_api.stub("/management/applications/321", json_body={"name": "My app name"})
        pipeline = EnhancementPipeline(
            [
                ResourceNameEnhancer(
                    down,
                    attribution_specs("api", None)[0],
                    client=ManagementApiClient(down, transport=httpx.MockTransport(refuse)),
                ),
                ResourceNameEnhancer(
                    up,
                    attribution_specs(None, "application")[0],
                    client=ManagementApiClient(up, transport=fake_api.transport),
                ),
            ]
        )

        record = pipeline.enhance({"api": "123", "application": "321"})

        assert record["api-name"] == ""
        assert record["application-name"] == "My app name"

    def test_purge_expired_sums_all_caches(self, fake_api, endpoint_config):
        pipeline = build_attribution_pipeline(endpoint_config, transport=fake_api.transport)
        # Nothing is old enough to expire under the default TTL
        pipeline.enhance({"api": "1", "application": "1"})
        assert pipeline.purge_expired() == 0

    def test_custom_specs(self, fake_api, endpoint_config):
        spec = EnhancerSpec(
            field_name="plan", enhanced_field_name="plan-name", resource_base_path="/plans"
        )
        fake_api.stub("/management/plans/p-1", json_body={"name": "Gold"})
        pipeline = build_pipeline(endpoint_config, [spec], transport=fake_api.transport)
        assert pipeline.enhance({"plan": "p-1"})["plan-name"] == "Gold"


class TestConcurrency:
    def test_parallel_records_share_one_cache(self, fake_api, endpoint_config):
        fake_api.stub("/management/apis/123", json_body={"name": "My API name"})
        pipeline = build_attribution_pipeline(
            endpoint_config, application_field=None, transport=fake_api.transport
        )
        start = threading.Barrier(8)

        def enhance_one(_):
            start.wait()
            return pipeline.enhance({"api": "123"})["api-name"]

        with ThreadPoolExecutor(max_workers=8) as executor:
            names = list(executor.map(enhance_one, range(8)))
        names += [pipeline.enhance({"api": "123"})["api-name"] for _ in range(50)]

        assert set(names) == {"My API name"}
        # Concurrent first misses may each call out; later records never do
        assert 1 <= fake_api.count("/management/apis/123") <= 8

    def test_close_releases_clients(self, fake_api, endpoint_config):
        pipeline = build_attribution_pipeline(endpoint_config, transport=fake_api.transport)
        pipeline.close()
        assert all(enhancer._client._http.is_closed for enhancer in pipeline.enhancers)
