from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from flowboard.db.database import Base, JSONType
from flowboard.models.company import new_id


class WidgetType(Base):
    """
    Catalog entry for a rendering kind (line_chart, kpi, donut_chart, map).
    ``name`` doubles as the tag of the widget's dataSourceConfig variant.
    """
    __tablename__ = "widget_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    component_binding = Column(String, nullable=False)  # frontend component, e.g. 'LineChartWidget'
    default_config = Column(JSONType, default=dict)

    def __repr__(self):
        return f"<WidgetType(id={self.id}, name='{self.name}')>"


class WidgetDefinition(Base):
    __tablename__ = "widget_definitions"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    widget_type_id = Column(Integer, ForeignKey("widget_types.id"), nullable=False)
    data_source_config = Column(JSONType, nullable=False, default=dict)
    created_by = Column(String(36), nullable=True)  # user id from the token
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    widget_type = relationship("WidgetType")

    def __repr__(self):
        return f"<WidgetDefinition(id='{self.id}', name='{self.name}')>"
