from typing import List

from pydantic import BaseModel

from ceksenet.schemas.evrak_schema import EvrakOut
from ceksenet.schemas.kredi_schema import KrediPortfoyOzet


class DashboardOzet(BaseModel):
    toplam_evrak: int
    toplam_tutar: float
    portfoydeki: int
    vadesi_yaklasan: int
    vadesi_gecen: int


class DurumDagilim(BaseModel):
    durum: str
    adet: int
    tutar: float


class TipDagilim(BaseModel):
    evrak_tipi: str
    adet: int
    tutar: float


class DashboardOut(BaseModel):
    ozet: DashboardOzet
    durum_dagilimi: List[DurumDagilim]
    tip_dagilimi: List[TipDagilim]
    son_evraklar: List[EvrakOut]
    yaklasan_vadeler: List[EvrakOut]
    kredi_ozeti: KrediPortfoyOzet
