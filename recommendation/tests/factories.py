"""Builders for store documents and a controllable clock."""


def make_university(name, country="India", field="Engineering", fee=200000,
                    placement=80, salary=900000, ranking=20, state="", city="",
                    features=None):
    return {
        "name": name,
        "location": {"city": city, "state": state, "country": country},
        "courses": [{"name": f"{field} programme", "field": field, "annualFee": fee}],
        "benchmarks": {
            "placementPercentage": placement,
            "averageSalary": salary,
            "ranking": ranking,
        },
        "type": "academics-focused",
        "keyFeatures": features or ["Strong faculty", "Modern labs", "Active clubs", "Green campus"],
    }


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
