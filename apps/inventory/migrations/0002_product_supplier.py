import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("inventory", "0001_initial"),
        ("procurement", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="product",
            name="supplier",
            field=models.ForeignKey(
                blank=True,
                help_text="Usual supplier of the product",
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="products",
                to="procurement.supplier",
            ),
        ),
    ]
