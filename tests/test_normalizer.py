"""Tests for filter grouping and lookup planning."""

from compatibility_api.models.compatibility import PropertyFilter
from compatibility_api.services.normalizer import (
    LookupMode,
    group_filters,
    normalize,
)


def pf(name, value):
    return PropertyFilter(propertyName=name, propertyValue=value)


def plan_for(filters, names=("Engine", "Trim"), category_id=None):
    return normalize(filters, list(names), category_id, default_category_id="179679")


class TestGroupFilters:
    def test_single_values(self):
        group = group_filters([pf("Year", "2014"), pf("Make", "Ram")])
        assert group == {"Year": ["2014"], "Make": ["Ram"]}

    def test_repeated_names_keep_order_and_duplicates(self):
        group = group_filters(
            [pf("Year", "2020"), pf("Make", "Ram"), pf("Year", "2014"), pf("Year", "2020")]
        )
        assert group["Year"] == ["2020", "2014", "2020"]

    def test_nameless_filters_are_skipped(self):
        group = group_filters([pf(None, "x"), pf("", "y"), pf("Make", "Ram")])
        assert group == {"Make": ["Ram"]}


class TestNormalize:
    def test_one_value_per_name_is_single_call_with_filters_untouched(self):
        filters = [pf("Year", "2014"), pf("Make", "Ram"), pf("Model", "1500")]
        plan = plan_for(filters)
        assert plan.mode is LookupMode.SINGLE
        assert plan.fan_out_property is None
        assert plan.branches() == [filters]

    def test_nameless_filter_still_travels_upstream(self):
        filters = [pf("", "junk"), pf("Make", "Ram")]
        plan = plan_for(filters)
        assert plan.branches() == [filters]
        assert "" not in plan.group

    def test_empty_filters(self):
        plan = plan_for([])
        assert plan.mode is LookupMode.SINGLE
        assert plan.branches() == [[]]

    def test_multiple_years_fan_out(self):
        filters = [pf("Year", "2014"), pf("Year", "2020"), pf("Make", "Ram"), pf("Model", "1500")]
        plan = plan_for(filters)
        assert plan.mode is LookupMode.FAN_OUT
        assert plan.fan_out_values == ["2014", "2020"]

        branches = plan.branches()
        assert len(branches) == 2
        assert branches[0] == [pf("Make", "Ram"), pf("Model", "1500"), pf("Year", "2014")]
        assert branches[1] == [pf("Make", "Ram"), pf("Model", "1500"), pf("Year", "2020")]

    def test_duplicate_year_values_are_not_collapsed(self):
        plan = plan_for([pf("Year", "2014"), pf("Year", "2014")])
        assert len(plan.branches()) == 2

    def test_other_repeated_dimensions_do_not_fan_out(self):
        filters = [pf("Make", "Ram"), pf("Make", "Dodge")]
        plan = plan_for(filters)
        assert plan.mode is LookupMode.SINGLE
        assert plan.branches() == [filters]

    def test_configured_fan_out_property(self):
        filters = [pf("Make", "Ram"), pf("Make", "Dodge"), pf("Year", "2014")]
        plan = normalize(
            filters, [], None, default_category_id="1", fan_out_property="Make"
        )
        assert plan.mode is LookupMode.FAN_OUT
        assert [b[-1].propertyValue for b in plan.branches()] == ["Ram", "Dodge"]

    def test_category_falls_back_to_default(self):
        assert plan_for([]).category_id == "179679"
        assert plan_for([], category_id="").category_id == "179679"
        assert plan_for([], category_id="33560").category_id == "33560"

    def test_fan_out_branches_reuse_the_callers_filters(self):
        null_year = PropertyFilter.model_validate({"propertyName": "Year", "propertyValue": None})
        filters = [null_year, pf("Year", "2020"), pf("Make", "Ram")]
        plan = plan_for(filters)
        assert plan.mode is LookupMode.FAN_OUT
        first, second = plan.branches()
        assert first[-1].to_upstream() == {"propertyName": "Year", "propertyValue": None}
        assert second[-1].to_upstream() == {"propertyName": "Year", "propertyValue": "2020"}
