# Automatically load all models so metadata knows them
from ceksenet.models.ayar_model import Ayar
from ceksenet.models.banka_model import Banka
from ceksenet.models.cari_model import Cari
from ceksenet.models.evrak_hareketi_model import EvrakHareketi
from ceksenet.models.evrak_model import Evrak
from ceksenet.models.kredi_model import Kredi
from ceksenet.models.kredi_taksit_model import KrediTaksit
from ceksenet.models.profile_model import Profile
