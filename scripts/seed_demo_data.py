#!/usr/bin/env python3
"""
Seed a demo user with leads across the pipeline for local UI work.

Usage:
    python scripts/seed_demo_data.py                          # demo@example.com
    python scripts/seed_demo_data.py --email me@example.com   # seed for another user
    python scripts/seed_demo_data.py --clear                  # wipe that user's leads first

Requires: DATABASE_URL set (or defaults to sqlite:///local.db).
"""
import sys
import os
import argparse
from datetime import timedelta

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from jobcrm import database
from jobcrm.database import Base
from jobcrm.logging_config import configure_logging
from jobcrm.models.job_match import JobMatch
from jobcrm.models.job_posting import JobPosting
from jobcrm.models.job_source import JobSource  # noqa: F401  (FK target for create_all)
from jobcrm.models.task import Task
from jobcrm.pipeline.projection import utcnow
from jobcrm.services.auth import find_or_create_user


# ── Sample postings ──────────────────────────────────────────────────────────
# due_in: hours from now

SAMPLE_JOBS = [
    {
        'company': 'Atlas Robotics',
        'role': 'Senior AI Product Manager',
        'location': 'Remote - US',
        'remote': True,
        'job_type': 'Full-time',
        'seniority': 'Senior',
        'description': 'Lead cross-functional AI initiatives across our robotics platform. '
                       'Define product roadmaps and partner with research teams.',
        'url': 'https://example.com/jobs/atlas-ai-pm',
        'keywords': ['AI', 'Product', 'Robotics'],
        'status': 'Interviewing',
        'priority': 'High',
        'fit_score': 84,
        'tags': ['AI', 'Product', 'Remote-first'],
        'notes': ['Panel interview scheduled Friday', 'Hiring manager loves quant storytelling'],
        'tasks': [
            {'title': 'Send thank-you recap & attach roadmap artifact', 'category': 'Follow-up',
             'due_in': 12, 'status': 'scheduled', 'auto_generated': True},
        ],
    },
    {
        'company': 'Northwind Labs',
        'role': 'Lead Platform Strategist',
        'location': 'Austin, TX',
        'remote': False,
        'job_type': 'Full-time',
        'seniority': 'Lead',
        'description': 'Grow and optimize platform adoption across enterprise partners. '
                       'Collaborate with GTM to design activation playbooks.',
        'url': 'https://example.com/jobs/northwind-platform',
        'keywords': ['Platform', 'Strategy'],
        'status': 'Applied',
        'priority': 'Medium',
        'fit_score': 74,
        'tags': ['Platform', 'Growth'],
        'notes': ['Referred by alumni', 'Needs follow-up to recruiter on availability'],
        'tasks': [
            {'title': 'Automate recruiter follow-up email with metrics', 'category': 'Outreach',
             'due_in': 48, 'status': 'pending', 'auto_generated': True},
        ],
    },
    {
        'company': 'Lighthouse Health',
        'role': 'Director of Product Operations',
        'location': 'Boston, MA (Hybrid)',
        'remote': False,
        'job_type': 'Full-time',
        'seniority': 'Director',
        'description': 'Scale product operations for our care delivery platform. '
                       'Build systems that empower teams to ship faster with higher quality.',
        'url': 'https://example.com/jobs/lighthouse-product-ops',
        'keywords': ['Healthcare', 'Operations'],
        'status': 'Prospecting',
        'priority': 'High',
        'fit_score': 68,
        'tags': ['Healthcare', 'Operations'],
        'notes': ['Need warm intro via LinkedIn group', 'Map product suite before outreach'],
        'tasks': [
            {'title': 'Build persona map & generate custom outreach sequence', 'category': 'Research',
             'due_in': 24, 'status': 'pending', 'auto_generated': False},
        ],
    },
]


def seed_demo(session, user, jobs=SAMPLE_JOBS, now=None):
    """Insert one posting + lead (+ tasks) per sample job for `user`. Returns the leads."""
    now = now or utcnow()
    matches = []
    for job in jobs:
        posting = JobPosting(
            owner_id=user.id,
            company=job['company'],
            role=job['role'],
            location=job['location'],
            remote=job['remote'],
            job_type=job['job_type'],
            seniority=job['seniority'],
            description=job['description'],
            url=job['url'],
            keywords=job['keywords'],
        )
        session.add(posting)
        session.flush()

        tasks = [
            Task(
                title=t['title'],
                category=t['category'],
                due_at=now + timedelta(hours=t['due_in']),
                status=t['status'],
                auto_generated=t['auto_generated'],
            )
            for t in job['tasks']
        ]
        match = JobMatch(
            posting_id=posting.id,
            user_id=user.id,
            status=job['status'],
            priority=job['priority'],
            fit_score=job['fit_score'],
            tags=job['tags'],
            notes=job['notes'],
            last_touchpoint=now,
            follow_up_at=tasks[0].due_at if tasks else None,
            tasks=tasks,
        )
        session.add(match)
        matches.append(match)
    session.flush()
    return matches


def clear_user_leads(session, user):
    match_ids = [m.id for m in session.query(JobMatch.id).filter(JobMatch.user_id == user.id)]
    deleted_tasks = 0
    if match_ids:
        deleted_tasks = session.query(Task).filter(Task.match_id.in_(match_ids)).delete(synchronize_session=False)
    deleted_matches = session.query(JobMatch).filter(JobMatch.user_id == user.id).delete(synchronize_session=False)
    deleted_postings = session.query(JobPosting).filter(
        JobPosting.owner_id == user.id,
        JobPosting.external_id.is_(None),
    ).delete(synchronize_session=False)
    print(f'Cleared {deleted_matches} leads, {deleted_tasks} tasks, {deleted_postings} postings.')


def main():
    parser = argparse.ArgumentParser(description='Seed demo pipeline data')
    parser.add_argument('--email', default='demo@example.com', help='Demo user email (created if missing)')
    parser.add_argument('--clear', action='store_true', help="Clear the user's manual leads before seeding")
    args = parser.parse_args()

    configure_logging()

    session = database.get_session()
    # Ensure tables exist (for SQLite local dev)
    Base.metadata.create_all(database.engine)

    try:
        user = find_or_create_user(session, args.email)
        if args.clear:
            clear_user_leads(session, user)

        print(f'Seeding demo leads for {user.email}...')
        matches = seed_demo(session, user)
        session.commit()
        print(f'Done! {len(matches)} leads seeded.')

    except Exception as e:
        session.rollback()
        print(f'Error: {e}')
        raise
    finally:
        session.close()


if __name__ == '__main__':
    main()
