# sample_data.py
from models import CVRecord, EducationEntry, ExperienceEntry, LanguageEntry

SAMPLE_CV = CVRecord(
    full_name="John Anderson",
    title="Senior Full Stack Developer",
    email="john.anderson@example.com",
    phone="+1 (555) 123-4567",
    location="San Francisco, CA",
    website="https://johnanderson.dev",
    linkedin="https://linkedin.com/in/johnanderson",
    github="https://github.com/johnanderson",
    template="modern",
    summary=(
        "Experienced Full Stack Developer with 5+ years of expertise in building scalable "
        "web applications. Proficient in React, Node.js, TypeScript, and cloud technologies. "
        "Passionate about creating efficient, user-friendly solutions and mentoring junior "
        "developers. Strong problem-solving skills and ability to work in fast-paced, agile "
        "environments."
    ),
    experience=[
        ExperienceEntry(
            company="TechCorp Inc.",
            position="Senior Full Stack Developer",
            location="San Francisco, CA",
            start_date="2022-01",
            end_date="",
            description=(
                "• Led development of microservices architecture serving 1M+ users\n"
                "• Improved application performance by 40% through code optimization\n"
                "• Mentored team of 5 junior developers\n"
                "• Implemented CI/CD pipelines reducing deployment time by 60%"
            ),
        ),
        ExperienceEntry(
            company="StartupXYZ",
            position="Full Stack Developer",
            location="Remote",
            start_date="2020-03",
            end_date="2021-12",
            description=(
                "• Developed and maintained React-based dashboard application\n"
                "• Built RESTful APIs using Node.js and Express\n"
                "• Integrated third-party payment systems (Stripe, PayPal)\n"
                "• Collaborated with design team to implement responsive UI/UX"
            ),
        ),
        ExperienceEntry(
            company="WebSolutions Co.",
            position="Junior Developer",
            location="New York, NY",
            start_date="2019-06",
            end_date="2020-02",
            description=(
                "• Assisted in development of e-commerce platform\n"
                "• Fixed bugs and implemented new features\n"
                "• Participated in code reviews and agile ceremonies"
            ),
        ),
    ],
    education=[
        EducationEntry(
            school="University of California, Berkeley",
            degree="Bachelor of Science",
            field="Computer Science",
            start_date="2015-09",
            end_date="2019-05",
            description=(
                "GPA: 3.8/4.0\n"
                "• Dean's List all semesters\n"
                "• President of Computer Science Club"
            ),
        ),
        EducationEntry(
            school="Tech Bootcamp",
            degree="Full Stack Web Development Certificate",
            field="Web Development",
            start_date="2019-01",
            end_date="2019-04",
            description=(
                "Intensive 12-week program covering React, Node.js, MongoDB, "
                "and deployment strategies."
            ),
        ),
    ],
    skills=[
        "JavaScript/TypeScript",
        "React & Next.js",
        "Node.js & Express",
        "Python",
        "PostgreSQL & MongoDB",
        "AWS & Docker",
        "Git & CI/CD",
        "REST APIs",
        "GraphQL",
        "Tailwind CSS",
    ],
    languages=[
        LanguageEntry(name="English", level="Native"),
        LanguageEntry(name="Spanish", level="Intermediate"),
        LanguageEntry(name="Mandarin", level="Basic"),
    ],
)


def sample_cv() -> CVRecord:
    """Fresh copy of the example CV (callers are free to mutate it)."""
    return SAMPLE_CV.model_copy(deep=True)
