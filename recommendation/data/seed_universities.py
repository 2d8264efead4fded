"""
Seed university records (camelCase store layout).

Loaded into the in-memory store in mock mode and by the test suite.
"""

from typing import Any, Dict, List


def _uni(name, city, state, courses, placement, salary, ranking, uni_type, features) -> Dict[str, Any]:
    return {
        "name": name,
        "location": {"city": city, "state": state, "country": "India"},
        "courses": [
            {"name": c_name, "field": c_field, "annualFee": fee}
            for c_name, c_field, fee in courses
        ],
        "benchmarks": {
            "placementPercentage": placement,
            "averageSalary": salary,
            "ranking": ranking,
        },
        "type": uni_type,
        "keyFeatures": features,
    }


SEED_UNIVERSITIES: List[Dict[str, Any]] = [
    _uni(
        "Indian Institute of Technology, Delhi", "New Delhi", "Delhi",
        [
            ("B.Tech in Computer Science", "Engineering", 220000),
            ("B.Tech in Electrical Engineering", "Engineering", 210000),
            ("B.Tech in Mechanical Engineering", "Engineering", 200000),
        ],
        98, 2000000, 1, "research-focused",
        [
            "Top-ranked engineering institute in India",
            "World-class research facilities",
            "Strong industry connections",
            "Vibrant campus life",
            "Distinguished alumni network",
        ],
    ),
    _uni(
        "Indian Institute of Technology, Bombay", "Mumbai", "Maharashtra",
        [
            ("B.Tech in Computer Science", "Engineering", 225000),
            ("B.Tech in Electronics", "Engineering", 215000),
            ("B.Tech in Civil Engineering", "Engineering", 205000),
        ],
        97, 1950000, 2, "research-focused",
        [
            "Premier technical institute",
            "Excellent placement record",
            "Strong focus on innovation",
            "Cutting-edge research facilities",
            "Diverse student community",
        ],
    ),
    _uni(
        "Indian Institute of Technology, Madras", "Chennai", "Tamil Nadu",
        [
            ("B.Tech in Computer Science", "Engineering", 215000),
            ("B.Tech in Data Science", "Engineering", 220000),
            ("B.Tech in Aerospace Engineering", "Engineering", 210000),
        ],
        96, 1900000, 3, "research-focused",
        [
            "Renowned for research excellence",
            "Industry-sponsored projects",
            "Strong entrepreneurship ecosystem",
            "IIT Madras Research Park proximity",
            "Active student technical clubs",
        ],
    ),
    _uni(
        "Delhi University, North Campus", "New Delhi", "Delhi",
        [
            ("B.A. Economics (Hons)", "Arts", 30000),
            ("B.Com (Hons)", "Commerce", 25000),
            ("B.Sc. Physics (Hons)", "Science", 28000),
        ],
        82, 800000, 10, "academics-focused",
        [
            "Prestigious liberal arts education",
            "Diverse course offerings",
            "Rich cultural campus life",
            "Renowned faculty members",
            "Historic campus architecture",
        ],
    ),
    _uni(
        "St. Stephen's College", "New Delhi", "Delhi",
        [
            ("B.A. English (Hons)", "Arts", 45000),
            ("B.Sc. Mathematics (Hons)", "Science", 40000),
            ("B.A. History (Hons)", "Arts", 42000),
        ],
        85, 850000, 5, "academics-focused",
        [
            "Elite liberal arts education",
            "Heritage institution",
            "Strong alumni network",
            "Holistic development focus",
            "Small class sizes with personalized attention",
        ],
    ),
    _uni(
        "All India Institute of Medical Sciences", "New Delhi", "Delhi",
        [
            ("MBBS", "Medicine", 150000),
            ("B.Sc. Nursing", "Medicine", 95000),
            ("B.Sc. Paramedical", "Medicine", 85000),
        ],
        100, 1800000, 1, "research-focused",
        [
            "Premier medical education institute",
            "Cutting-edge medical research",
            "State-of-the-art hospital facilities",
            "World-renowned faculty",
            "Top NEET scores required for admission",
        ],
    ),
    _uni(
        "National Law School of India University", "Bangalore", "Karnataka",
        [
            ("B.A. LL.B. (Hons)", "Law", 220000),
            ("LL.M.", "Law", 180000),
        ],
        95, 1500000, 1, "academics-focused",
        [
            "Top law school in India",
            "Rigorous legal education",
            "Excellent moot court facilities",
            "Distinguished legal faculty",
            "Strong placement in top law firms",
        ],
    ),
    _uni(
        "Indian Institute of Management, Ahmedabad", "Ahmedabad", "Gujarat",
        [
            ("MBA", "Commerce", 2300000),
            ("Executive MBA", "Commerce", 2800000),
        ],
        100, 2800000, 1, "placement-focused",
        [
            "Premier management institute",
            "Case-based teaching methodology",
            "Industry-leading placements",
            "Distinguished alumni network",
            "Iconic campus architecture",
        ],
    ),
    _uni(
        "Birla Institute of Technology and Science, Pilani", "Pilani", "Rajasthan",
        [
            ("B.Tech in Computer Science", "Engineering", 245000),
            ("B.Tech in Electronics", "Engineering", 235000),
            ("M.Sc. Economics", "Arts", 215000),
        ],
        92, 1600000, 8, "holistic-development",
        [
            "No attendance requirement",
            "Flexible curriculum",
            "Practice School program for industry exposure",
            "Strong entrepreneurship culture",
            "Active technical festivals",
        ],
    ),
    _uni(
        "Chandigarh University", "Chandigarh", "Punjab",
        [
            ("B.Tech in Computer Science", "Engineering", 180000),
            ("BBA", "Commerce", 150000),
            ("B.Pharm", "Medicine", 165000),
        ],
        85, 800000, 25, "placement-focused",
        [
            "Modern campus infrastructure",
            "Strong industry connections",
            "International collaborations",
            "Active placement cell",
            "Emphasis on practical learning",
        ],
    ),
]
