#!/usr/bin/env python
"""
Generate demo/seed data for development.

Writes go straight to the session and bypass the service layer, so use
this only for bootstrapping non-production databases.
"""

import argparse
import asyncio
import sys
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession


# Add src to path for imports
sys.path.insert(0, "src")

from app.core.audit.models import AuditLog, ConsultancyAuditLog
from app.core.database import async_session_factory
from app.core.permissions.roles import AccessLevel, MemberRole
from app.modules.assignments.models import Assignment, RaciRole
from app.modules.matrices.models import Matrix, TaskGroup
from app.modules.organizations.models import (
    ConsultancyAccess,
    Member,
    Organization,
    OrganizationType,
)
from app.modules.projects.models import Project
from app.modules.tasks.models import Task, TaskGroupMembership
from app.modules.users.models import User


SUPER_ADMIN_EMAIL = "admin@racisaas.com"

# email, name, role, job title, department
TECHCORP_MEMBERS = [
    ("sarah.chen@techcorp.com", "Sarah Chen", MemberRole.OWNER, "VP of Engineering", "Engineering"),
    ("david.kim@techcorp.com", "David Kim", MemberRole.MEMBER, "Senior Backend Engineer", "Engineering"),
    ("jessica.martinez@techcorp.com", "Jessica Martinez", MemberRole.MEMBER, "Frontend Lead", "Engineering"),
    ("alex.thompson@techcorp.com", "Alex Thompson", MemberRole.MEMBER, "DevOps Engineer", "Engineering"),
    ("priya.patel@techcorp.com", "Priya Patel", MemberRole.MEMBER, "QA Lead", "Engineering"),
    ("james.wilson@techcorp.com", "James Wilson", MemberRole.MEMBER, "Product Manager", "Product"),
    ("sophia.nguyen@techcorp.com", "Sophia Nguyen", MemberRole.MEMBER, "Product Designer", "Product"),
    ("marcus.brown@techcorp.com", "Marcus Brown", MemberRole.MEMBER, "UX Researcher", "Product"),
    ("olivia.garcia@techcorp.com", "Olivia Garcia", MemberRole.MEMBER, "Operations Manager", "Operations"),
    ("ethan.lee@techcorp.com", "Ethan Lee", MemberRole.MEMBER, "Project Coordinator", "Operations"),
]

# name, description
MOBILE_TASKS = [
    ("User Research & Analysis", "Conduct user interviews and analyze existing app usage patterns"),
    ("Wireframe Design", "Create low-fidelity wireframes for key screens"),
    ("High-Fidelity Mockups", "Design final visual mockups with brand guidelines"),
    ("Frontend Development", "Implement UI components and screens"),
    ("Backend API Integration", "Connect frontend to backend services"),
    ("QA Testing", "Comprehensive testing across devices and OS versions"),
    ("Production Deployment", "Deploy to app stores with phased rollout"),
]

# task index, member index, role
A, R, C = RaciRole.ACCOUNTABLE, RaciRole.RESPONSIBLE, RaciRole.CONSULTED
MOBILE_ASSIGNMENTS = [
    (0, 7, A), (0, 7, R), (0, 6, C),
    (1, 6, A), (1, 6, R), (1, 7, C),
    (2, 6, A), (2, 6, R), (2, 0, C),
    (3, 2, A), (3, 2, R), (3, 1, R),
    (4, 1, A), (4, 1, R), (4, 2, C),
    (5, 4, A), (5, 4, R), (5, 2, C),
    (6, 3, A), (6, 3, R), (6, 0, C),
]  # fmt: skip


@dataclass
class DemoData:
    """Identifiers of the rows the demo scenario created."""

    organization_id: UUID
    owner_user_id: UUID
    super_admin_user_id: UUID
    member_ids: list[UUID] = field(default_factory=list)
    matrix_ids: list[UUID] = field(default_factory=list)
    task_ids: list[UUID] = field(default_factory=list)


async def seed_demo(session: AsyncSession) -> DemoData:
    """Create the TechCorp demo organization.

    Ten active members, two projects, two matrices holding eight tasks
    and 23 assignments (9 Responsible, 8 Accountable, 6 Consulted), plus
    a consultancy super-user with access to every organization.

    Args:
        session: Session to write into; the caller commits

    Returns:
        Identifiers of the created rows
    """
    super_admin = User(email=SUPER_ADMIN_EMAIL, name="Super Admin")
    session.add(super_admin)
    await session.flush()
    session.add(
        ConsultancyAccess(
            user_id=super_admin.id,
            can_access_all_orgs=True,
            access_level=AccessLevel.ADMIN,
        )
    )

    organization = Organization(
        name="TechCorp Solutions",
        slug="techcorp",
        type=OrganizationType.CLIENT,
        settings={"defaultMatrixView": "grid", "requireApproval": True},
    )
    session.add(organization)
    await session.flush()

    members: list[Member] = []
    for email, name, role, job_title, department in TECHCORP_MEMBERS:
        user = User(email=email, name=name)
        session.add(user)
        await session.flush()
        member = Member(
            user_id=user.id,
            organization_id=organization.id,
            role=role,
            job_title=job_title,
            department_labels=[department],
        )
        session.add(member)
        members.append(member)
    await session.flush()

    owner = members[0]
    mobile_project = Project(
        organization_id=organization.id,
        name="Mobile App Redesign",
        description="Complete redesign of iOS and Android mobile applications with new features",
        owner_id=owner.id,
    )
    api_project = Project(
        organization_id=organization.id,
        name="API Migration to v2",
        description="Migrate all backend services to new API architecture",
        owner_id=owner.id,
    )
    session.add_all([mobile_project, api_project])
    await session.flush()

    mobile_matrix = Matrix(
        project_id=mobile_project.id,
        name="Q1 Mobile App Sprint",
        description="RACI assignments for mobile app redesign sprint",
        version=1,
    )
    api_matrix = Matrix(
        project_id=api_project.id,
        name="API v2 Migration Tasks",
        description="Backend migration responsibilities",
        version=1,
    )
    session.add_all([mobile_matrix, api_matrix])
    await session.flush()

    design_group = TaskGroup(matrix_id=mobile_matrix.id, name="Design", color="#8B5CF6")
    session.add(design_group)

    mobile_tasks = [
        Task(matrix_id=mobile_matrix.id, name=name, description=description, order_index=index)
        for index, (name, description) in enumerate(MOBILE_TASKS)
    ]
    api_task = Task(matrix_id=api_matrix.id, name="API Design & Documentation", order_index=0)
    session.add_all([*mobile_tasks, api_task])
    await session.flush()

    session.add_all(
        TaskGroupMembership(task_id=task.id, task_group_id=design_group.id)
        for task in mobile_tasks[1:3]
    )
    session.add_all(
        Assignment(
            matrix_id=mobile_matrix.id,
            task_id=mobile_tasks[task_index].id,
            member_id=members[member_index].id,
            raci_role=role,
            assigned_by=owner.user_id,
        )
        for task_index, member_index, role in MOBILE_ASSIGNMENTS
    )
    session.add_all(
        Assignment(
            matrix_id=api_matrix.id,
            task_id=api_task.id,
            member_id=members[1].id,
            raci_role=role,
            assigned_by=owner.user_id,
        )
        for role in (A, R)
    )
    await session.flush()

    return DemoData(
        organization_id=organization.id,
        owner_user_id=owner.user_id,
        super_admin_user_id=super_admin.id,
        member_ids=[member.id for member in members],
        matrix_ids=[mobile_matrix.id, api_matrix.id],
        task_ids=[task.id for task in [*mobile_tasks, api_task]],
    )


async def reset(session: AsyncSession) -> None:
    """Delete every row, children first."""
    for model in (
        ConsultancyAuditLog,
        AuditLog,
        Assignment,
        TaskGroupMembership,
        Task,
        TaskGroup,
        Matrix,
        Project,
        Member,
        ConsultancyAccess,
        Organization,
        User,
    ):
        await session.execute(delete(model))


async def main(scenario: str) -> None:
    """Run the seeding based on scenario."""
    async with async_session_factory() as session:
        if scenario == "demo":
            result = await session.execute(
                select(Organization).where(Organization.slug == "techcorp")
            )
            if result.scalar_one_or_none():
                print("Demo organization already exists: techcorp")
                return
            data = await seed_demo(session)
            await session.commit()
            print(f"Created demo organization techcorp ({data.organization_id})")
            print(f"  {len(data.member_ids)} members, {len(data.task_ids)} tasks")
            print(f"  Owner: {TECHCORP_MEMBERS[0][0]}")
            print(f"  Super admin: {SUPER_ADMIN_EMAIL}")
        elif scenario == "reset":
            await reset(session)
            await session.commit()
            print("Deleted all rows")
        else:
            print(f"Unknown scenario: {scenario}")
            print("Available scenarios: demo, reset")
            sys.exit(1)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed database with demo data")
    parser.add_argument(
        "--scenario",
        "-s",
        default="demo",
        help="Seed scenario to run (demo, reset)",
    )
    args = parser.parse_args()

    asyncio.run(main(args.scenario))
