import sys
import os

# Add the project root directory to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlmodel import Session
from datetime import datetime, timedelta, timezone
import random
from arena.models.profile import Profile, UserType
from arena.models.challenge import Challenge, Difficulty
from arena.models.challenge_participant import ChallengeParticipant
from arena.models.submission import Submission, SubmissionStatus

from arena.services.database import engine, create_db_and_tables
from arena.services.scoring import apply_review

# Test data
test_companies = [
    {"full_name": "Ada Research", "email": "ada@airesearchlabs.example", "company_name": "AI Research Labs"},
    {"full_name": "Tom Corp", "email": "tom@techcorp.example", "company_name": "TechCorp Inc."},
    {"full_name": "Chris Chat", "email": "chris@chatsystems.example", "company_name": "ChatSystems"},
    {"full_name": "Sam Stream", "email": "sam@streamflix.example", "company_name": "StreamFlix"},
    {"full_name": "Sue Secure", "email": "sue@securitytech.example", "company_name": "SecurityTech"},
    {"full_name": "Dev Tools", "email": "dev@devtools.example", "company_name": "DevTools Inc."},
]

test_participants = [
    {"full_name": "John Doe", "email": "john@example.com"},
    {"full_name": "Jane Smith", "email": "jane@example.com"},
    {"full_name": "Bob Wilson", "email": "bob@example.com"},
    {"full_name": "Alice Jones", "email": "alice@example.com"},
    {"full_name": "Charlie Brown", "email": "charlie@example.com"},
    {"full_name": "Emma Davis", "email": "emma@example.com"},
    {"full_name": "David Miller", "email": "david@example.com"},
    {"full_name": "Sophia Wilson", "email": "sophia@example.com"},
]

test_challenges = [
    {
        "title": "LLM-based Summarization Engine",
        "company": "AI Research Labs",
        "description": "Build an LLM-powered engine that can summarize technical documents with high accuracy and low hallucination rates.",
        "difficulty": Difficulty.INTERMEDIATE,
        "days_left": 5,
        "tags": ["NLP", "LLM", "Summarization"],
        "featured": True,
    },
    {
        "title": "Multimodal Content Classifier",
        "company": "TechCorp Inc.",
        "description": "Create a system that can classify content across text, images and video using a unified ML approach.",
        "difficulty": Difficulty.ADVANCED,
        "days_left": 12,
        "tags": ["Multimodal", "Classification", "Computer Vision"],
        "featured": False,
    },
    {
        "title": "Conversational AI Assistant",
        "company": "ChatSystems",
        "description": "Develop a conversational AI assistant that can handle customer service inquiries for a retail company.",
        "difficulty": Difficulty.INTERMEDIATE,
        "days_left": 8,
        "tags": ["Conversational AI", "NLP", "Customer Service"],
        "featured": True,
    },
    {
        "title": "Recommendation System Optimization",
        "company": "StreamFlix",
        "description": "Optimize a recommendation system for a streaming platform to improve user engagement and content discovery.",
        "difficulty": Difficulty.ADVANCED,
        "days_left": 15,
        "tags": ["Recommendations", "ML Optimization", "User Engagement"],
        "featured": False,
    },
    {
        "title": "Real-time Object Detection",
        "company": "SecurityTech",
        "description": "Build a real-time object detection system for security cameras that can identify suspicious activities.",
        "difficulty": Difficulty.ADVANCED,
        "days_left": 10,
        "tags": ["Computer Vision", "Object Detection", "Real-time Processing"],
        "featured": False,
    },
    {
        "title": "AI-powered Code Assistant",
        "company": "DevTools Inc.",
        "description": "Create an AI assistant that can help developers write better code through suggestions and bug detection.",
        "difficulty": Difficulty.INTERMEDIATE,
        "days_left": 7,
        "tags": ["Code Generation", "Developer Tools", "LLM"],
        "featured": True,
    },
]

def create_profiles(session: Session):
    companies = [
        Profile(user_type=UserType.COMPANY, **data) for data in test_companies
    ]
    participants = [
        Profile(user_type=UserType.PARTICIPANT, **data) for data in test_participants
    ]
    session.add_all(companies + participants)
    session.commit()
    return companies, participants

def create_challenges(session: Session, companies: list[Profile]):
    owners = {company.company_name: company for company in companies}
    now = datetime.now(timezone.utc)
    challenges = []

    for data in test_challenges:
        challenge = Challenge(
            title=data["title"],
            company=data["company"],
            description=data["description"],
            long_description=f"{data['description']} Submissions are judged on quality, originality and how well they hold up in a realistic setting.",
            difficulty=data["difficulty"],
            deadline=now + timedelta(days=data["days_left"]),
            tags=data["tags"],
            prizes=[
                {"position": "1st Place", "reward": "$5,000"},
                {"position": "2nd Place", "reward": "$2,500"},
            ],
            submission_requirements=["Source code repository", "Demo video", "Slide deck"],
            evaluation_criteria=["Accuracy", "Code quality", "Presentation"],
            featured=data["featured"],
            created_by=owners[data["company"]].user_id,
        )
        challenges.append(challenge)

    session.add_all(challenges)
    session.commit()
    return challenges

def create_participation(session: Session, challenges: list[Challenge], participants: list[Profile]):
    for challenge in challenges:
        joined = random.sample(participants, k=random.randint(2, len(participants)))
        for participant in joined:
            session.add(ChallengeParticipant(challenge_id=challenge.challenge_id, user_id=participant.user_id))
            challenge.participants += 1

            # Roughly half of the joined users submit, and most of those get reviewed
            if random.random() < 0.5:
                continue
            submission = Submission(
                challenge_id=challenge.challenge_id,
                user_id=participant.user_id,
                github_url=f"https://github.com/example/{challenge.challenge_id}-{participant.user_id}",
                video_url="https://videos.example.com/demo",
                presentation_url="https://slides.example.com/deck",
                submitted_at=datetime.now(timezone.utc) - timedelta(days=random.randint(0, 10)),
            )
            session.add(submission)
            session.flush()
            if random.random() < 0.8:
                apply_review(
                    session,
                    submission,
                    SubmissionStatus.REVIEWED,
                    random.randint(60, 100),
                    "Solid work overall.",
                )
        session.add(challenge)

    session.commit()

def main():
    create_db_and_tables()

    with Session(engine) as session:
        companies, participants = create_profiles(session)
        print(f"Created {len(companies)} companies and {len(participants)} participants")

        challenges = create_challenges(session, companies)
        print(f"Created {len(challenges)} challenges")

        create_participation(session, challenges, participants)
        print("Created participation and submissions")

if __name__ == "__main__":
    main()
