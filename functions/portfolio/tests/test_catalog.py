import unittest

from portfolio.catalog import ProjectFilters, filter_projects, list_categories
from portfolio.db import ProjectRecord


def project(title, category, tags=(), premium=False, description=""):
    return ProjectRecord(
        title=title,
        description=description or f"{title} description",
        category=category,
        tags=list(tags),
        is_premium=premium,
    )


PROJECTS = [
    project("Shop Dashboard", "Web App", ["React", "Charts"], premium=True),
    project("Landing Page", "Template", ["HTML", "CSS"]),
    project("Chat", "Mobile", ["React Native"], premium=True),
    project("Docs Theme", "Template", ["Markdown"], description="A theme for docs sites"),
]


def titles(projects):
    return [p.title for p in projects]


class FilterProjectsTests(unittest.TestCase):
    def test_no_filters_keeps_everything_in_order(self):
        filters = ProjectFilters()
        self.assertFalse(filters.is_active)
        self.assertEqual(filter_projects(PROJECTS, filters), PROJECTS)

    def test_search_matches_title_description_and_tags(self):
        self.assertEqual(
            titles(filter_projects(PROJECTS, ProjectFilters(search="REACT"))),
            ["Shop Dashboard", "Chat"],
        )
        self.assertEqual(
            titles(filter_projects(PROJECTS, ProjectFilters(search="docs sites"))),
            ["Docs Theme"],
        )
        self.assertEqual(
            titles(filter_projects(PROJECTS, ProjectFilters(search="landing"))),
            ["Landing Page"],
        )

    def test_category_filter(self):
        filters = ProjectFilters(categories=("Template", "Mobile"))
        self.assertEqual(
            titles(filter_projects(PROJECTS, filters)),
            ["Landing Page", "Chat", "Docs Theme"],
        )

    def test_access_filters(self):
        self.assertEqual(
            titles(filter_projects(PROJECTS, ProjectFilters(premium_only=True))),
            ["Shop Dashboard", "Chat"],
        )
        self.assertEqual(
            titles(filter_projects(PROJECTS, ProjectFilters(free_only=True))),
            ["Landing Page", "Docs Theme"],
        )

    def test_filters_combine(self):
        filters = ProjectFilters(search="react", categories=("Mobile",), premium_only=True)
        self.assertEqual(titles(filter_projects(PROJECTS, filters)), ["Chat"])

    def test_result_is_subset_of_input(self):
        filters = ProjectFilters(search="a", free_only=True)
        result = filter_projects(PROJECTS, filters)
        self.assertTrue(all(p in PROJECTS for p in result))

    def test_list_categories(self):
        self.assertEqual(list_categories(PROJECTS), ["Mobile", "Template", "Web App"])


class ProjectFiltersTests(unittest.TestCase):
    def test_from_query(self):
        filters = ProjectFilters.from_query("  chat ", ["Mobile", ""], "premium")
        self.assertEqual(filters.search, "chat")
        self.assertEqual(filters.categories, ("Mobile",))
        self.assertTrue(filters.premium_only)
        self.assertFalse(filters.free_only)
        self.assertTrue(filters.is_active)

    def test_unknown_access_is_ignored(self):
        filters = ProjectFilters.from_query(None, None, "vip")
        self.assertIsNone(filters.access)
        self.assertFalse(filters.is_active)

    def test_access_toggles_are_exclusive(self):
        filters = ProjectFilters().toggle_premium()
        self.assertTrue(filters.premium_only)
        filters = filters.toggle_free()
        self.assertTrue(filters.free_only)
        self.assertFalse(filters.premium_only)
        filters = filters.toggle_free()
        self.assertFalse(filters.free_only)
        self.assertFalse(filters.premium_only)

    def test_toggle_category(self):
        filters = ProjectFilters().toggle_category("Mobile").toggle_category("Template")
        self.assertEqual(filters.categories, ("Mobile", "Template"))
        self.assertEqual(filters.toggle_category("Mobile").categories, ("Template",))

    def test_as_query_and_clear(self):
        filters = ProjectFilters(search="chat", categories=("Mobile",), free_only=True)
        self.assertEqual(
            filters.as_query(), {"q": "chat", "category": ["Mobile"], "access": "free"}
        )
        self.assertEqual(filters.cleared(), ProjectFilters())
        self.assertEqual(ProjectFilters().as_query(), {})


if __name__ == "__main__":
    unittest.main()
