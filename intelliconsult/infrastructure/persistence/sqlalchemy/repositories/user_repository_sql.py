from datetime import datetime, time, timezone
from typing import Optional, List, Dict, Any
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import User, DoctorProfile, BlockedTime
from .....application.ports.user_repo import (
    UserRepository,
    UserDto,
    DoctorProfileDto,
    DoctorProfileInput,
    NewUser,
    UserSearch,
)
from .....exceptions import AlreadyExists, DuplicateIdentity
from .....utils import as_utc, utcnow


class SqlUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def _profile(self, user_id: str) -> Optional[DoctorProfile]:
        return self.session.get(DoctorProfile, user_id)

    def _to_dto(self, user: User, profile: Optional[DoctorProfile] = None) -> UserDto:
        if profile is None and user.user_type == "doctor":
            profile = self._profile(user.id)
        doctor = None
        if profile is not None:
            doctor = DoctorProfileDto(
                specialization=profile.specialization,
                experience=profile.experience,
                license_number=profile.license_number,
                bio=profile.bio,
                consultation_fee=profile.consultation_fee or 0,
                working_hours=dict(profile.working_hours or {}),
                average_rating=profile.average_rating or 0.0,
                review_count=profile.review_count or 0,
                approved_at=as_utc(profile.approved_at),
            )
        return UserDto(
            id=user.id,
            user_type=user.user_type,
            full_name=user.full_name,
            email=user.email,
            password_hash=user.password_hash,
            google_id=user.google_id,
            is_email_verified=bool(user.is_email_verified),
            is_verified=bool(user.is_verified),
            is_profile_complete=bool(user.is_profile_complete),
            created_at=as_utc(user.created_at),
            updated_at=as_utc(user.updated_at),
            email_verification_expires=as_utc(user.email_verification_expires),
            password_reset_expires=as_utc(user.password_reset_expires),
            doctor=doctor,
        )

    def _get(self, user_id: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.id == user_id)).first()

    def _save(self, user: User) -> User:
        user.updated_at = utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        user = self._get(user_id)
        return self._to_dto(user) if user else None

    def get_by_email(self, email: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.email == email)).first()
        return self._to_dto(user) if user else None

    def get_by_email_and_role(self, email: str, user_type: str) -> Optional[UserDto]:
        user = self.session.exec(
            select(User).where(User.email == email).where(User.user_type == user_type)
        ).first()
        return self._to_dto(user) if user else None

    def create(self, new_user: NewUser) -> UserDto:
        user = User(
            user_type=new_user.user_type,
            full_name=new_user.full_name,
            email=new_user.email,
            password_hash=new_user.password_hash,
            google_id=new_user.google_id,
            is_email_verified=new_user.is_email_verified,
            is_verified=new_user.is_verified,
            is_profile_complete=new_user.is_profile_complete,
        )
        self.session.add(user)
        profile = None
        if new_user.user_type == "doctor":
            d = new_user.doctor or DoctorProfileInput()
            profile = DoctorProfile(
                user_id=user.id,
                specialization=d.specialization,
                experience=d.experience,
                license_number=d.license_number or None,
                bio=d.bio,
                consultation_fee=d.consultation_fee or 0,
                working_hours={},
            )
            self.session.add(profile)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            if "license_number" in str(e.orig):
                raise AlreadyExists("License number is already registered.")
            raise DuplicateIdentity()
        self.session.refresh(user)
        if profile is not None:
            self.session.refresh(profile)
        return self._to_dto(user, profile)

    def delete(self, user_id: str) -> None:
        user = self._get(user_id)
        if not user:
            return
        for block in self.session.exec(select(BlockedTime).where(BlockedTime.doctor_id == user_id)).all():
            self.session.delete(block)
        profile = self._profile(user_id)
        if profile is not None:
            self.session.delete(profile)
            self.session.flush()
        self.session.delete(user)
        self.session.commit()

    def set_email_verification(self, user_id: str, token_hash: Optional[str], expires: Optional[datetime]) -> None:
        user = self._get(user_id)
        if not user:
            return
        user.email_verification_token_hash = token_hash
        user.email_verification_expires = expires
        self._save(user)

    def find_by_email_token(self, token_hash: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.email_verification_token_hash == token_hash)).first()
        return self._to_dto(user) if user else None

    def mark_email_verified(self, user_id: str) -> None:
        user = self._get(user_id)
        if not user:
            return
        user.is_email_verified = True
        user.email_verification_token_hash = None
        user.email_verification_expires = None
        self._save(user)

    def set_password_reset(self, user_id: str, token_hash: Optional[str], expires: Optional[datetime]) -> None:
        user = self._get(user_id)
        if not user:
            return
        user.password_reset_token_hash = token_hash
        user.password_reset_expires = expires
        self._save(user)

    def find_by_reset_token(self, token_hash: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.password_reset_token_hash == token_hash)).first()
        return self._to_dto(user) if user else None

    def update_password(self, user_id: str, password_hash: str) -> None:
        user = self._get(user_id)
        if not user:
            return
        user.password_hash = password_hash
        user.password_reset_token_hash = None
        user.password_reset_expires = None
        self._save(user)

    def set_verified(self, user_id: str, is_verified: bool) -> Optional[UserDto]:
        user = self._get(user_id)
        if not user:
            return None
        user.is_verified = is_verified
        profile = self._profile(user_id)
        if profile is not None and is_verified and profile.approved_at is None:
            profile.approved_at = utcnow()
            self.session.add(profile)
        self._save(user)
        return self._to_dto(user)

    def update_profile(self, user_id: str, full_name: Optional[str]) -> Optional[UserDto]:
        user = self._get(user_id)
        if not user:
            return None
        if full_name is not None:
            user.full_name = full_name
        self._save(user)
        return self._to_dto(user)

    def complete_profile(self, user_id: str, full_name: Optional[str], doctor: Optional[DoctorProfileInput]) -> Optional[UserDto]:
        user = self._get(user_id)
        if not user:
            return None
        if full_name is not None:
            user.full_name = full_name
        if doctor is not None and user.user_type == "doctor":
            profile = self._profile(user_id) or DoctorProfile(user_id=user_id, working_hours={})
            profile.specialization = doctor.specialization
            profile.experience = doctor.experience
            profile.license_number = doctor.license_number
            profile.bio = doctor.bio
            profile.consultation_fee = doctor.consultation_fee or 0
            self.session.add(profile)
        user.is_profile_complete = True
        try:
            self._save(user)
        except IntegrityError:
            self.session.rollback()
            raise AlreadyExists("License number is already registered.")
        return self._to_dto(user)

    def search(self, user_type: str, filters: UserSearch) -> List[UserDto]:
        stmt = select(User).where(User.user_type == user_type)
        if filters.name_prefix:
            stmt = stmt.where(func.lower(User.full_name).startswith(filters.name_prefix.lower(), autoescape=True))
        if filters.email_prefix:
            stmt = stmt.where(User.email.startswith(filters.email_prefix.lower(), autoescape=True))
        if filters.is_verified is not None:
            stmt = stmt.where(User.is_verified == filters.is_verified)
        if filters.created_from:
            stmt = stmt.where(User.created_at >= datetime.combine(filters.created_from, time.min, tzinfo=timezone.utc))
        if filters.created_to:
            stmt = stmt.where(User.created_at <= datetime.combine(filters.created_to, time.max, tzinfo=timezone.utc))
        if user_type == "doctor" and (filters.license_prefix or filters.specialization):
            stmt = stmt.join(DoctorProfile, DoctorProfile.user_id == User.id)
            if filters.license_prefix:
                stmt = stmt.where(func.lower(DoctorProfile.license_number).startswith(filters.license_prefix.lower(), autoescape=True))
            if filters.specialization:
                stmt = stmt.where(func.lower(DoctorProfile.specialization) == filters.specialization.lower())
        rows = self.session.exec(stmt.order_by(User.created_at.desc())).all()
        return [self._to_dto(u) for u in rows]

    def set_working_hours(self, doctor_id: str, working_hours: Dict[str, Any]) -> None:
        profile = self._profile(doctor_id) or DoctorProfile(user_id=doctor_id)
        # Reassign so the JSON column is flagged dirty
        profile.working_hours = dict(working_hours)
        self.session.add(profile)
        self.session.commit()

    def set_rating(self, doctor_id: str, average_rating: float, review_count: int) -> None:
        profile = self._profile(doctor_id)
        if profile is None:
            return
        profile.average_rating = average_rating
        profile.review_count = review_count
        self.session.add(profile)
        self.session.commit()
