from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum, Boolean, JSON, UniqueConstraint
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime

from smart_charging.models.charging_station import ChargePointStatus, CurrentType

Base = declarative_base()


class Site(Base):
    """Table des sites (zones) de recharge"""
    __tablename__ = "sites"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False, default="")
    maximum_power = Column(Float, nullable=True, comment="Limite du raccordement en W")
    voltage = Column(Float, nullable=True)
    number_of_phases = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relations
    stations = relationship("ChargingStation", back_populates="site", cascade="all, delete-orphan")


class ChargingStation(Base):
    """Table des bornes"""
    __tablename__ = "charging_stations"

    id = Column(String, primary_key=True, index=True, comment="Charge box ID")
    site_id = Column(String, ForeignKey("sites.id"), nullable=False, index=True)
    maximum_power = Column(Float, nullable=False, default=0.0, comment="Puissance max de la borne en W")
    voltage = Column(Float, nullable=True)
    current_type = Column(Enum(CurrentType), nullable=True)
    exclude_from_smart_charging = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relations
    site = relationship("Site", back_populates="stations")
    connectors = relationship("Connector", back_populates="charging_station", cascade="all, delete-orphan",
                              order_by="Connector.connector_id")
    charge_points = relationship("ChargePoint", back_populates="charging_station", cascade="all, delete-orphan",
                                 order_by="ChargePoint.charge_point_id")
    settings = relationship("StationSetting", back_populates="charging_station", cascade="all, delete-orphan")


class ChargePoint(Base):
    """Table des points de charge - un point de charge peut alimenter plusieurs connecteurs"""
    __tablename__ = "charge_points"

    id = Column(Integer, primary_key=True, index=True)
    charging_station_id = Column(String, ForeignKey("charging_stations.id"), nullable=False, index=True)
    charge_point_id = Column(Integer, nullable=False)
    connector_ids = Column(JSON, default=list)
    current_type = Column(Enum(CurrentType), nullable=True)
    amperage = Column(Float, nullable=True, comment="Ampérage total en A")
    number_of_connected_phase = Column(Integer, nullable=True)
    voltage = Column(Float, nullable=True)
    efficiency = Column(Float, nullable=True, comment="Rendement AC/DC en %")
    share_power_to_all_connectors = Column(Boolean, default=False)
    cannot_charge_in_parallel = Column(Boolean, default=False)
    exclude_from_power_limitation = Column(Boolean, default=False)

    # Relations
    charging_station = relationship("ChargingStation", back_populates="charge_points")

    __table_args__ = (
        UniqueConstraint('charging_station_id', 'charge_point_id', name='uq_station_charge_point'),
    )


class Connector(Base):
    """Table des connecteurs"""
    __tablename__ = "connectors"

    id = Column(Integer, primary_key=True, index=True)
    charging_station_id = Column(String, ForeignKey("charging_stations.id"), nullable=False, index=True)
    connector_id = Column(Integer, nullable=False, comment="Numéro du connecteur (1, 2, etc.)")
    status = Column(Enum(ChargePointStatus), default=ChargePointStatus.AVAILABLE, index=True)
    current_type = Column(Enum(CurrentType), nullable=True)
    amperage = Column(Float, nullable=True)
    number_of_connected_phase = Column(Integer, nullable=True)
    charge_point_id = Column(Integer, nullable=True)
    current_transaction_id = Column(Integer, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relations
    charging_station = relationship("ChargingStation", back_populates="connectors")

    __table_args__ = (
        UniqueConstraint('charging_station_id', 'connector_id', name='uq_station_connector'),
    )


class Transaction(Base):
    """Table des transactions (sessions de charge)"""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    charging_station_id = Column(String, ForeignKey("charging_stations.id"), nullable=False, index=True)
    connector_id = Column(Integer, nullable=False)
    timestamp = Column(DateTime, default=datetime.now, nullable=False)  # Heure locale, comme BuildContext.now

    # Meter values
    current_total_consumption_wh = Column(Float, default=0.0)
    current_instant_amps = Column(Float, default=0.0)
    current_instant_watts_dc = Column(Float, default=0.0)
    phases_used = Column(JSON, nullable=True)  # {"cs_phase1": true, ...}

    car_id = Column(String, ForeignKey("cars.id"), nullable=True)


class CarCatalog(Base):
    """Catalogue des modèles de véhicules"""
    __tablename__ = "car_catalogs"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_make = Column(String, nullable=True)
    vehicle_model = Column(String, nullable=True)
    fast_charge_power_max = Column(Float, nullable=True, comment="kW")
    battery_capacity_full = Column(Float, nullable=True, comment="kWh")


class Car(Base):
    """Table des véhicules"""
    __tablename__ = "cars"

    id = Column(String, primary_key=True, index=True)
    converter = Column(JSON, nullable=True)  # {"amperage_per_phase": 16, "number_of_phases": 3}
    car_catalog_id = Column(Integer, ForeignKey("car_catalogs.id"), nullable=True)

    # Relations
    car_catalog = relationship("CarCatalog")


class ChargingProfile(Base):
    """Profils de charge envoyés aux bornes"""
    __tablename__ = "charging_profiles"

    id = Column(Integer, primary_key=True, index=True)
    charging_station_id = Column(String, ForeignKey("charging_stations.id"), nullable=False, index=True)
    connector_id = Column(Integer, nullable=False)
    charge_point_id = Column(Integer, nullable=True)
    profile = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class StationSetting(Base):
    """Paramètres OCPP des bornes (clé / valeur)"""
    __tablename__ = "station_settings"

    id = Column(Integer, primary_key=True, index=True)
    charging_station_id = Column(String, ForeignKey("charging_stations.id"), nullable=False, index=True)
    key = Column(String, nullable=False)
    value = Column(String, nullable=True)

    # Relations
    charging_station = relationship("ChargingStation", back_populates="settings")

    __table_args__ = (
        UniqueConstraint('charging_station_id', 'key', name='uq_station_setting'),
    )
